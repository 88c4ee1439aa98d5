"""Raw declarations supplied by the language front end.

The front end parses source files, resolves fully-qualified types and
dumps one flat list of declarations per run as YAML or JSON. This module
models that dump and loads it; it never walks a syntax tree.
"""

import json
import logging
from enum import Enum
from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError

from api_doc_generator.errors import DeclarationError
from api_doc_generator.parser.base import ProjectFamily, ProjectInfo

logger = logging.getLogger(__name__)


class DeclarationKind(str, Enum):
    OPERATION = "operation"
    OPTIONS_CLASS = "options_class"
    ENUM = "enum"
    CLASS = "class"
    SERVICE_REGISTRATION = "service_registration"


class RawAttribute(BaseModel):
    name: str
    arguments: list[str] = []
    named: dict[str, str] = {}

    def argument(self, name: str, position: int | None = None) -> str | None:
        """Return a named argument, falling back to a positional one."""
        if name in self.named:
            return self.named[name]
        if position is not None and position < len(self.arguments):
            return self.arguments[position]
        return None


class RawParameter(BaseModel):
    name: str
    type: str | None = None  # lambdas and local functions have none
    type_full_name: str = ""
    has_default: bool = False


class RawTypeParameter(BaseModel):
    name: str
    variance: str = ""
    constraints: list[str] = []


class RawProperty(BaseModel):
    name: str
    type: str
    type_full_name: str = ""
    is_public: bool = True
    has_getter: bool = True
    has_setter: bool = True
    initializer: str | None = None
    is_enum: bool = False
    documentation: str = ""


class RawConstructor(BaseModel):
    parameters: list[RawParameter] = []


class RawRegistration(BaseModel):
    name: str
    type_arguments: list[str] = []
    argument_count: int = 0


class RawDeclaration(BaseModel):
    """One declaration as produced by the front end."""

    kind: DeclarationKind
    namespace: str = ""
    type_name: str
    member_name: str | None = None
    is_public: bool = True
    is_interface: bool = False
    is_struct: bool = False
    attributes: list[RawAttribute] = []
    parameters: list[RawParameter] = []
    type_parameters: list[RawTypeParameter] = []
    return_type: str = "void"
    properties: list[RawProperty] = []
    constructors: list[RawConstructor] = []
    members: list[str] = []
    using_directives: list[str] = []
    registrations: list[RawRegistration] = []
    documentation: str = ""
    file: str = ""
    project: str | None = None

    def attribute(self, *names: str) -> RawAttribute | None:
        for attr in self.attributes:
            if attr.name in names:
                return attr
        return None

    def attributes_named(self, name: str) -> list[RawAttribute]:
        return [a for a in self.attributes if a.name == name]


class RawProject(BaseModel):
    name: str
    path: str = ""
    target_framework: str = ""
    family: ProjectFamily | None = None
    is_test_project: bool | None = None


class DeclarationSet(BaseModel):
    """Everything the front end extracted from one input tree."""

    root: str = ""  # source directory the front end was run on
    projects: list[RawProject] = []
    declarations: list[RawDeclaration] = []

    def extend(self, other: "DeclarationSet") -> None:
        if not self.root:
            self.root = other.root
        self.projects.extend(other.projects)
        self.declarations.extend(other.declarations)


def classify_framework(target_framework: str) -> ProjectFamily:
    """Map a target framework moniker to a project family."""
    tf = target_framework.strip().lower()
    if tf.startswith("netcoreapp"):
        return ProjectFamily.MODERN
    if tf.startswith("netstandard"):
        return ProjectFamily.STANDARD
    if tf.startswith("netframework"):
        return ProjectFamily.LEGACY
    if tf.startswith("net") and len(tf) > 3 and tf[3].isdigit():
        # net4x monikers belong to the old framework, net5 and above are modern
        return ProjectFamily.LEGACY if tf[3] == "4" else ProjectFamily.MODERN
    return ProjectFamily.UNKNOWN


def to_project_info(raw: RawProject) -> ProjectInfo:
    family = raw.family or classify_framework(raw.target_framework)
    is_test = raw.is_test_project
    if is_test is None:
        lowered = raw.name.lower()
        is_test = lowered.endswith("test") or lowered.endswith("tests")
    return ProjectInfo(
        name=raw.name,
        path=raw.path,
        target_framework=raw.target_framework,
        family=family,
        is_test_project=is_test,
    )


def parse_declarations(file_path: Path) -> DeclarationSet:
    """Load one declaration dump (YAML or JSON)."""
    text = file_path.read_text(encoding="utf-8")
    try:
        if file_path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise DeclarationError(f"{file_path}: {e}") from e

    if data is None:
        return DeclarationSet()
    if not isinstance(data, dict):
        raise DeclarationError(f"{file_path}: expected a mapping with 'projects' and 'declarations'.")

    try:
        result = DeclarationSet(**data)
    except ValidationError as e:
        raise DeclarationError(f"{file_path}: {e}") from e

    logger.debug("%s: %d declarations", file_path, len(result.declarations))
    return result
