"""Plain-text generation report (generation.txt)."""

from itertools import groupby

from api_doc_generator.config import GeneratorSettings
from api_doc_generator.generator.conflicts import SectionConflict
from api_doc_generator.generator.types import get_json_type, is_allowed_parameter
from api_doc_generator.parser.base import OperationDescriptor, OptionsClassDescriptor
from api_doc_generator.parser.normalizer import NormalizedSet, OperationGroups
from api_doc_generator.writer.base import category_sort_key

CR = "\n"


def missing_operation_docs(op: OperationDescriptor) -> list[str]:
    """Undocumented items of an operation, skipping the content parameter."""
    missing = []
    if not op.documentation:
        missing.append("<summary>")
    missing += [p.name for p in op.parameters[1:] if not p.documentation]
    if not op.is_action and not op.return_value.documentation:
        missing.append("<returns>")
    return missing


def missing_options_class_docs(oc: OptionsClassDescriptor) -> list[str]:
    missing = []
    if not oc.documentation:
        missing.append("<class summary>")
    missing += [p.name for p in oc.properties if not p.documentation]
    return missing


def _signature(op: OperationDescriptor) -> str:
    return ", ".join(f"{p.type} {p.name}" for p in op.parameters[1:])


class GenerationReport:
    """Collects the audit trail of one run and renders it as text."""

    def __init__(
        self,
        settings: GeneratorSettings,
        normalized: NormalizedSet,
        groups: OperationGroups,
        options_classes: list[OptionsClassDescriptor],
        conflicts: list[SectionConflict],
    ):
        self.settings = settings
        self.normalized = normalized
        self.groups = groups
        self.options_classes = options_classes
        self.conflicts = conflicts

    def render(self) -> str:
        sections = [
            self._counts(),
            self._missing_operations(),
            self._missing_options_classes(),
            self._conflicts(),
            self._descriptions(),
            self._operations("Functions and parameters:", is_action=False),
            self._operations("Actions and parameters:", is_action=True),
            self._options_classes(),
            self._duplicates(),
            self._odata_cheat_sheet(),
            self._options_cheat_sheet(),
        ]
        return CR.join(s for s in sections if s)

    def _counts(self) -> str:
        return (
            f"Path:            {self.settings.input}{CR}"
            f"Operations:      {len(self.groups.all)}{CR}"
            f"Options classes: {len(self.normalized.options_classes)}{CR}"
        )

    def _missing_operations(self) -> str:
        items = [(op, missing_operation_docs(op)) for op in self.groups.core]
        items = [(op, missing) for op, missing in items if len(missing) > 1]
        lines = [
            f"Missing documentation of operations (except the first 'content' parameter) (count: {len(items)}):",
            "File\tMethodName\tParameter",
        ]
        lines += [f"'{op.file}'\t{op.method_name}\t{', '.join(missing)}" for op, missing in items]
        return CR.join(lines) + CR

    def _missing_options_classes(self) -> str:
        items = [(oc, missing_options_class_docs(oc)) for oc in self.normalized.options_classes]
        items = [(oc, missing) for oc, missing in items if missing]
        lines = [
            f"Missing documentation of options classes (count: {len(items)}):",
            "File\tClassName\tProperty",
        ]
        lines += [f"'{oc.file}'\t{oc.class_name}\t{', '.join(missing)}" for oc, missing in items]
        return CR.join(lines) + CR

    def _conflicts(self) -> str:
        if not self.conflicts:
            return ""
        return CR.join(c.message for c in self.conflicts) + CR

    def _descriptions(self) -> str:
        lines = ["Operation descriptions:", "Description\tMethodName\tFile"]
        lines += [f"'{op.description}'\t{op.method_name}\t{op.file}" for op in self.groups.core if op.description]
        return CR.join(lines) + CR

    def _operations(self, title: str, is_action: bool) -> str:
        lines = [title, "File\tMethodName\tParameters"]
        lines += [
            f"{op.file}\t{op.method_name}\t{_signature(op)}" for op in self.groups.core if op.is_action == is_action
        ]
        return CR.join(lines) + CR

    def _options_classes(self) -> str:
        lines = ["Options classes and properties:", "File\tClassName\tProperties"]
        for oc in self.options_classes:
            properties = ", ".join(f"{p.type} {p.name}" for p in oc.properties)
            lines.append(f"{oc.file}\t{oc.class_name}\t{properties}")
        return CR.join(lines) + CR

    def _duplicates(self) -> str:
        if not self.normalized.duplicates:
            return ""
        lines = [f"Duplicated declarations (count: {len(self.normalized.duplicates)}):"]
        lines += self.normalized.duplicates
        return CR.join(lines) + CR

    def _odata_cheat_sheet(self) -> str:
        hidden = self.settings.hidden_parameter_types
        lines = ["ODATA CHEAT SHEET:"]
        ops = sorted(self.groups.core, key=lambda o: (category_sort_key(o.category), o.category))
        for category, group in groupby(ops, key=lambda o: o.category):
            lines.append(f"  {category}")
            for op in sorted(group, key=lambda o: o.operation_name):
                params = ", ".join(
                    f"{get_json_type(p.type)} {p.name}" for p in op.parameters[1:] if is_allowed_parameter(p, hidden)
                )
                lines.append(
                    f"    {'POST' if op.is_action else 'GET '} {op.operation_name}({params}) : "
                    f"{get_json_type(op.return_value.type)}"
                )
        return CR.join(lines) + CR

    def _options_cheat_sheet(self) -> str:
        lines = ["OPTION CLASSES CHEAT SHEET:"]
        for oc in self.options_classes:
            lines.append(f"  {oc.class_name}")
            for p in oc.properties:
                accessors = f"{' get;' if p.has_getter else ''}{' set;' if p.has_setter else ''}"
                lines.append(f"    {p.type} {p.name} {{{accessors} }} {p.initializer or ''}".rstrip())
        return CR.join(lines) + CR
