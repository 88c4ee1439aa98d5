"""Type vocabulary helpers.

Declared types arrive as source text (``Task<IEnumerable<string>>``).
The public audience sees them narrowed to a JSON-ish vocabulary
(``string[]``); the internal audience sees them as declared.
"""

from api_doc_generator.parser.base import ParameterDescriptor

VOID_TYPES = {"System.Threading.Tasks.Task", "STT.Task", "Task", "void"}
TASK_PREFIXES = ("System.Threading.Tasks.Task<", "STT.Task<", "Task<")
COLLECTION_PREFIXES = ("IEnumerable<", "ICollection<", "IList<", "List<", "ODataArray<")
COLLECTION_MARKERS = tuple(f".{p}" for p in COLLECTION_PREFIXES)
CALLBACK_PREFIXES = ("System.Func<", "System.Action")


def _unwrap(type_: str, prefix: str) -> str:
    inner = type_[len(prefix):]
    return inner[:-1] if inner.endswith(">") else inner


def get_json_type(type_: str) -> str:
    """Narrow a declared type to the public type vocabulary."""
    type_ = type_.strip()
    if type_ in VOID_TYPES:
        return "void"
    for prefix in TASK_PREFIXES:
        if type_.startswith(prefix):
            type_ = _unwrap(type_, prefix)
            break
    for prefix in COLLECTION_PREFIXES:
        if type_.startswith(prefix):
            return get_json_type(_unwrap(type_, prefix)) + "[]"
    return type_


def get_frontend_type(type_: str) -> str:
    return f"`{get_json_type(type_)}`"


def format_type(type_: str) -> str:
    """Quote generic types so Markdown does not eat the angle brackets."""
    return f"`{type_}`" if "<" in type_ else type_


def element_type_name(type_full_name: str) -> str:
    """Strip a collection wrapper (or array suffix) from a resolved type."""
    for marker in COLLECTION_MARKERS:
        if marker in type_full_name:
            inner = type_full_name[type_full_name.index("<") + 1:]
            return inner.rstrip(">")
    if type_full_name.endswith("[]"):
        return type_full_name[:-2]
    return type_full_name


def is_backend_only(type_full_name: str) -> bool:
    """Callback types cannot be expressed in configuration files."""
    return type_full_name.startswith(CALLBACK_PREFIXES)


def is_allowed_parameter(parameter: ParameterDescriptor, hidden_types: list[str]) -> bool:
    """Infrastructure parameters injected by the host are not part of the API."""
    return parameter.type not in hidden_types
