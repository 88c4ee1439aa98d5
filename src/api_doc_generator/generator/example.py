"""Example generator: synthesizes configuration examples from a type graph."""

import re
from datetime import datetime
from enum import Enum

from api_doc_generator.generator.types import COLLECTION_PREFIXES, element_type_name, get_json_type
from api_doc_generator.parser.base import (
    ClassDescriptor,
    EnumDescriptor,
    OptionsClassDescriptor,
    PropertyDescriptor,
)

STRING_PLACEHOLDER = "_stringValue_"
REFERENCE_DATE = datetime(2023, 10, 19, 9, 45, 18)

BOOLEAN_TYPES = {"bool", "Boolean", "System.Boolean"}
INTEGRAL_TYPES = {
    "int", "long", "short", "byte", "uint", "ulong", "ushort", "sbyte",
    "Int16", "Int32", "Int64", "UInt16", "UInt32", "UInt64", "Byte", "SByte",
}
FLOATING_TYPES = {"float", "double", "decimal", "Single", "Double", "Decimal"}
DATE_TYPES = {"DateTime", "DateTimeOffset", "DateOnly", "System.DateTime", "System.DateTimeOffset"}
STRING_TYPES = {"string", "String", "System.String"}

SECTION_SEPARATORS = re.compile(r"[:/.]")


class Audience(str, Enum):
    FRONTEND = "frontend"  # public readers; backend-only properties hidden
    BACKEND = "backend"


def _declared_element_type(type_: str) -> str:
    type_ = type_.strip()
    for prefix in COLLECTION_PREFIXES:
        if type_.startswith(prefix):
            type_ = type_[len(prefix):].rstrip(">")
            break
    if type_.endswith("[]"):
        type_ = type_[:-2]
    return type_.rstrip("?")


class ExampleGenerator:
    """Builds example values for the properties of a class.

    A class that is already being expanded further up the recursion path
    is rendered as an empty object, so cyclic type graphs terminate.
    """

    def __init__(
        self,
        classes: dict[str, ClassDescriptor],
        enums: dict[str, EnumDescriptor],
        audience: Audience = Audience.FRONTEND,
    ):
        self.classes = classes
        self.enums = enums
        self.audience = audience

    def generate(self, cls: ClassDescriptor) -> dict:
        return self._class_example(cls, (cls.full_name,))

    def _visible(self, prop: PropertyDescriptor) -> bool:
        return self.audience == Audience.BACKEND or not prop.is_backend_only

    def _class_example(self, cls: ClassDescriptor, path: tuple[str, ...]) -> dict:
        return {
            prop.name: self._property_example(cls, prop, path)
            for prop in cls.properties
            if self._visible(prop)
        }

    def _property_example(self, cls: ClassDescriptor, prop: PropertyDescriptor, path: tuple[str, ...]):
        if prop.is_enum:
            return self._enum_example(prop)

        json_type = get_json_type(prop.type)
        is_array = json_type.endswith("[]")
        scalar = json_type[:-2] if is_array else json_type
        scalar = scalar.rstrip("?")

        if scalar in STRING_TYPES:
            return [STRING_PLACEHOLDER] if is_array else STRING_PLACEHOLDER
        if not is_array:
            if scalar in BOOLEAN_TYPES:
                return True
            if scalar in INTEGRAL_TYPES:
                return 0
            if scalar in FLOATING_TYPES:
                return 0.0
            if scalar in DATE_TYPES:
                return REFERENCE_DATE.isoformat()

        nested = self._nested_class(cls, prop)
        if nested is None or nested.full_name in path:
            value = {}
        else:
            value = self._class_example(nested, path + (nested.full_name,))
        return [value] if is_array else value

    def _enum_example(self, prop: PropertyDescriptor) -> str:
        enum = self.enums.get(prop.type_full_name.rstrip("?"))
        if enum is None:
            return f"_enum_value_of_{prop.type_full_name}_"
        return " | ".join(enum.members)

    def _nested_class(self, cls: ClassDescriptor, prop: PropertyDescriptor) -> ClassDescriptor | None:
        """Resolve a class-valued property through its own or the using namespaces."""
        type_full_name = element_type_name(prop.type_full_name).rstrip("?")
        if "." in type_full_name:
            return self.classes.get(type_full_name)

        type_name = _declared_element_type(prop.type)
        for namespace in [*cls.using_directives, cls.namespace]:
            found = self.classes.get(f"{namespace}.{type_name}")
            if found is not None:
                return found
        return None


def generate_example(
    cls: ClassDescriptor,
    classes: dict[str, ClassDescriptor],
    enums: dict[str, EnumDescriptor],
    audience: Audience = Audience.FRONTEND,
) -> dict:
    """Return the example object of one class (not nested under a section)."""
    return ExampleGenerator(classes, enums, audience).generate(cls)


def split_section(section: str) -> list[str]:
    return [name for name in SECTION_SEPARATORS.split(section) if name]


def nest_under_section(section: str, example: dict) -> dict:
    """Wrap an example into the nesting given by a configuration section path."""
    names = split_section(section)
    if not names:
        return dict(example)
    root: dict = {}
    level = root
    for name in names[:-1]:
        level[name] = {}
        level = level[name]
    level[names[-1]] = example
    return root


def merge_examples(target: dict, source: dict) -> dict:
    """Deep-merge source into target; objects merge at shared keys."""
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            merge_examples(target[key], value)
        else:
            target[key] = value
    return target


def build_configuration_example(
    options_classes: list[OptionsClassDescriptor],
    classes: dict[str, ClassDescriptor],
    enums: dict[str, EnumDescriptor],
    audience: Audience = Audience.FRONTEND,
) -> dict:
    """Merge the section-nested examples of several options classes."""
    generator = ExampleGenerator(classes, enums, audience)
    result: dict = {}
    for oc in options_classes:
        merge_examples(result, nest_under_section(oc.config_section, generator.generate(oc)))
    return result
