"""Conflict detection between options classes bound to the same section."""

from enum import Enum

from pydantic import BaseModel

from api_doc_generator.log import GenerationLog
from api_doc_generator.parser.base import OptionsClassDescriptor


class Severity(str, Enum):
    WARNING = "warning"  # same section, compatible properties
    ERROR = "error"  # same section, a shared property disagrees in type


class SectionConflict(BaseModel):
    """Two options classes bound to the same configuration section."""

    section: str
    first: OptionsClassDescriptor
    second: OptionsClassDescriptor
    severity: Severity

    @property
    def message(self) -> str:
        if self.severity == Severity.ERROR:
            head = (
                f"ERROR! Duplicated section '{self.section}' and property type violation "
                "found in these options classes:"
            )
        else:
            head = f"WARNING! Duplicated section '{self.section}' found in these options classes:"
        lines = [head]
        for oc in (self.first, self.second):
            lines.append(f"\t{oc.class_name}: {oc.file}")
            lines.append("\t\t" + "; ".join(f"{p.type} {p.name}" for p in oc.properties))
        if self.severity == Severity.ERROR:
            lines.append("\tDocumentations of these classes are skipped.")
        return "\n".join(lines)


def properties_agree(a: OptionsClassDescriptor, b: OptionsClassDescriptor) -> bool:
    """True when every property name present in both classes has the same type."""
    types = {p.name: p.type for p in b.properties}
    return all(types.get(p.name, p.type) == p.type for p in a.properties)


def classify_pair(a: OptionsClassDescriptor, b: OptionsClassDescriptor) -> Severity | None:
    if a.config_section != b.config_section:
        return None
    return Severity.WARNING if properties_agree(a, b) else Severity.ERROR


def find_conflicts(options_classes: list[OptionsClassDescriptor]) -> list[SectionConflict]:
    conflicts = []
    for i, first in enumerate(options_classes):
        for second in options_classes[i + 1:]:
            severity = classify_pair(first, second)
            if severity is not None:
                conflicts.append(
                    SectionConflict(section=first.config_section, first=first, second=second, severity=severity)
                )
    return conflicts


def resolve_conflicts(
    options_classes: list[OptionsClassDescriptor], log: GenerationLog
) -> tuple[list[OptionsClassDescriptor], list[SectionConflict]]:
    """Log every section overlap and drop the classes of hard conflicts.

    Returns the documented classes (input order kept) and the conflicts.
    """
    conflicts = find_conflicts(options_classes)
    removed: set[int] = set()
    for conflict in conflicts:
        if conflict.severity == Severity.ERROR:
            log.error(conflict.message, conflict.first.file)
            removed.update((id(conflict.first), id(conflict.second)))
        else:
            log.warning(conflict.message, conflict.first.file)
    return [oc for oc in options_classes if id(oc) not in removed], conflicts
