"""Metadata normalizer.

Turns raw front-end declarations into the canonical descriptors of
parser/base.py. Declarations that do not have the required shape are
reported as ``Status.UNSUPPORTED`` and silently left out; duplicates of
an already seen class or enum are dropped and logged.
"""

import logging
from enum import Enum
from typing import Any, Callable, Iterable

from pydantic import BaseModel

from api_doc_generator.config import GeneratorSettings
from api_doc_generator.errors import DocumentationError
from api_doc_generator.generator.types import is_backend_only
from api_doc_generator.log import GenerationLog
from api_doc_generator.parser.base import (
    ClassDescriptor,
    EnumDescriptor,
    OperationDescriptor,
    OptionsClassDescriptor,
    ParameterDescriptor,
    ProjectFamily,
    ProjectInfo,
    PropertyDescriptor,
    RegistrationCall,
    ReturnValueDescriptor,
    ServiceRegistrationDescriptor,
    TypeParameterDescriptor,
)
from api_doc_generator.parser.declarations import (
    DeclarationKind,
    DeclarationSet,
    RawDeclaration,
    RawParameter,
    to_project_info,
)
from api_doc_generator.parser.doccomment import transform_documentation

logger = logging.getLogger(__name__)

OPERATION_ATTRIBUTES = ("ODataFunction", "ODataAction")
OPTIONS_ATTRIBUTE = "OptionsClass"
UNCATEGORIZED = "Uncategorized"

# Page names of the operation index and cheat sheet; no entity or category may take them
RESERVED_NAMES = ("index", "cheatsheet")

# Attribute name -> (descriptor field, constant-class prefix of its arguments)
REQUIREMENT_ATTRIBUTES = {
    "AllowedRoles": ("allowed_roles", "N.R."),
    "RequiredPermissions": ("required_permissions", "N.P."),
    "RequiredPolicies": ("required_policies", "N.Pol."),
    "Scenario": ("scenarios", "N.S."),
    "ContentTypes": ("content_types", "N.CT."),
}


class Status(str, Enum):
    OK = "ok"
    UNSUPPORTED = "unsupported"  # shape mismatch, silently skipped
    FATAL = "fatal"  # cannot be documented, logged as an error


class Outcome(BaseModel):
    """Result of normalizing one declaration."""

    status: Status
    value: Any = None
    reason: str = ""

    @classmethod
    def ok(cls, value) -> "Outcome":
        return cls(status=Status.OK, value=value)

    @classmethod
    def unsupported(cls, reason: str = "") -> "Outcome":
        return cls(status=Status.UNSUPPORTED, reason=reason)

    @classmethod
    def fatal(cls, reason: str) -> "Outcome":
        return cls(status=Status.FATAL, reason=reason)

    @property
    def is_ok(self) -> bool:
        return self.status == Status.OK


class NormalizedSet(BaseModel):
    """Everything the writers need, in declaration-encounter order."""

    root: str = ""
    operations: list[OperationDescriptor] = []
    options_classes: list[OptionsClassDescriptor] = []
    classes: dict[str, ClassDescriptor] = {}
    enums: dict[str, EnumDescriptor] = {}
    registrations: list[ServiceRegistrationDescriptor] = []
    duplicates: list[str] = []


class OperationGroups(BaseModel):
    all: list[OperationDescriptor] = []
    core: list[OperationDescriptor] = []
    framework: list[OperationDescriptor] = []
    test: list[OperationDescriptor] = []


def unquote(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if value.startswith("@"):
        value = value[1:]
    return value.strip('"')


def relative_file(file: str, root: str) -> str:
    """Return the file path relative to the input root, if it lies inside."""
    if not root:
        return file
    normalized = file.replace("\\", "/")
    prefix = root.replace("\\", "/").rstrip("/") + "/"
    if normalized.lower().startswith(prefix.lower()):
        return file[len(prefix):]
    return file


def category_link(category: str) -> str:
    link = category.replace(" ", "").lower()
    if link in RESERVED_NAMES:
        return f"{link}1"
    return link


def assign_link_slugs(entities: Iterable, name_of: Callable[[Any], str], reserved: Iterable[str] = ()) -> None:
    """Give every entity a unique lower-case slug, in iteration order.

    The first entity keeps the plain name; later collisions get 1, 2, ...
    Names in ``reserved`` are treated as already taken.
    """
    used: set[str] = set(reserved)
    for entity in entities:
        base = name_of(entity).lower()
        slug = base
        index = 0
        while slug in used:
            index += 1
            slug = f"{base}{index}"
        used.add(slug)
        entity.link_slug = slug


def partition_operations(operations: list[OperationDescriptor]) -> OperationGroups:
    """Split operations by owning project.

    Test: no project, or a test project. Framework: legacy or unknown
    family. Core: everything else.
    """
    groups = OperationGroups(all=list(operations))
    for op in operations:
        if op.project is None or op.project.is_test_project:
            groups.test.append(op)
        elif op.project_family in (ProjectFamily.LEGACY, ProjectFamily.UNKNOWN):
            groups.framework.append(op)
        else:
            groups.core.append(op)
    return groups


class Normalizer:
    """Normalizes one declaration set.

    Usage:
        normalizer = Normalizer(settings, log)
        result = normalizer.normalize(declarations)
    """

    def __init__(self, settings: GeneratorSettings, log: GenerationLog):
        self.settings = settings
        self.log = log
        self.projects: dict[str, ProjectInfo] = {}
        self.root = ""

    def normalize(self, declarations: DeclarationSet) -> NormalizedSet:
        self.root = declarations.root
        self.projects = {p.name: to_project_info(p) for p in declarations.projects}
        result = NormalizedSet(root=declarations.root)

        for raw in declarations.declarations:
            if raw.kind == DeclarationKind.OPERATION:
                self._collect(self.operation(raw), result.operations, raw)
            elif raw.kind == DeclarationKind.OPTIONS_CLASS:
                self._collect(self.options_class(raw), result.options_classes, raw)
                self._register(self.plain_class(raw), result.classes, result.duplicates, "class")
            elif raw.kind == DeclarationKind.CLASS:
                self._register(self.plain_class(raw), result.classes, result.duplicates, "class")
            elif raw.kind == DeclarationKind.ENUM:
                self._register(self.enum(raw), result.enums, result.duplicates, "enum")
            elif raw.kind == DeclarationKind.SERVICE_REGISTRATION:
                self._collect(self.registration(raw), result.registrations, raw)

        logger.debug(
            "Normalized %d operations, %d options classes, %d classes, %d enums, %d registrations",
            len(result.operations),
            len(result.options_classes),
            len(result.classes),
            len(result.enums),
            len(result.registrations),
        )
        return result

    def _collect(self, outcome: Outcome, target: list, raw: RawDeclaration) -> None:
        if outcome.is_ok:
            target.append(outcome.value)
        elif outcome.status == Status.FATAL:
            self.log.error(outcome.reason, raw.file)

    def _register(self, outcome: Outcome, registry: dict, duplicates: list[str], kind: str) -> None:
        if not outcome.is_ok:
            return
        descriptor = outcome.value
        existing = registry.get(descriptor.full_name)
        if existing is None:
            registry[descriptor.full_name] = descriptor
            return
        if existing.file == descriptor.file:
            return  # options classes are registered as plain classes as well
        message = f"Duplicated {kind} '{descriptor.full_name}': {descriptor.file} (kept: {existing.file})"
        duplicates.append(message)
        self.log.info(message, descriptor.file)

    # -- helpers --------------------------------------------------------------

    def _location(self, raw: RawDeclaration) -> dict:
        return {
            "namespace": raw.namespace,
            "file": raw.file,
            "file_relative": relative_file(raw.file, self.root),
            "project": self.projects.get(raw.project) if raw.project else None,
        }

    def _documentation(self, raw_doc: str, file: str, **targets) -> str:
        try:
            return transform_documentation(raw_doc, **targets)
        except DocumentationError as e:
            self.log.warning(str(e), file)
            return ""

    @staticmethod
    def _parameter(raw: RawParameter) -> ParameterDescriptor:
        return ParameterDescriptor(
            name=raw.name,
            type=raw.type or "",
            type_full_name=raw.type_full_name or raw.type or "",
            is_optional=raw.has_default,
        )

    # -- declaration kinds ----------------------------------------------------

    def operation(self, raw: RawDeclaration) -> Outcome:
        attribute = raw.attribute(*OPERATION_ATTRIBUTES)
        if attribute is None or not raw.member_name:
            return Outcome.unsupported("not an operation method")
        if any(p.type is None for p in raw.parameters):
            return Outcome.unsupported("untyped parameter")
        parameters = [self._parameter(p) for p in raw.parameters]
        if not parameters or parameters[0].type not in self.settings.content_parameter_types:
            return Outcome.unsupported("missing content parameter")

        category = unquote(attribute.argument("Category")) or UNCATEGORIZED
        return_value = ReturnValueDescriptor(type=raw.return_type, type_full_name=raw.return_type)
        op = OperationDescriptor(
            class_name=raw.type_name,
            method_name=raw.member_name,
            operation_name=unquote(attribute.argument("OperationName", 0)) or raw.member_name,
            category=category,
            category_in_link=category_link(category),
            is_action=attribute.name == "ODataAction",
            icon=unquote(attribute.argument("Icon")),
            description=unquote(attribute.argument("Description")) or "",
            parameters=parameters,
            return_value=return_value,
            **self._location(raw),
        )
        for name, (field, prefix) in REQUIREMENT_ATTRIBUTES.items():
            values = getattr(op, field)
            for requirement in raw.attributes_named(name):
                for argument in requirement.arguments:
                    value = unquote(argument)
                    values.append(value[len(prefix):] if value.startswith(prefix) else value)

        op.documentation = self._documentation(
            raw.documentation, raw.file, parameters=op.parameters, return_value=op.return_value
        )
        return Outcome.ok(op)

    def _properties(self, raw: RawDeclaration) -> list[PropertyDescriptor]:
        properties = []
        for prop in raw.properties:
            if not prop.is_public:
                continue
            type_full_name = prop.type_full_name or prop.type
            properties.append(
                PropertyDescriptor(
                    name=prop.name,
                    type=prop.type,
                    type_full_name=type_full_name,
                    is_enum=prop.is_enum,
                    is_backend_only=is_backend_only(type_full_name),
                    has_getter=prop.has_getter,
                    has_setter=prop.has_setter,
                    initializer=prop.initializer,
                    documentation=self._documentation(prop.documentation, raw.file),
                )
            )
        return properties

    def options_class(self, raw: RawDeclaration) -> Outcome:
        attribute = raw.attribute(OPTIONS_ATTRIBUTE)
        if attribute is None or not raw.is_public:
            return Outcome.unsupported("not a public options class")
        if raw.constructors and all(c.parameters for c in raw.constructors):
            return Outcome.unsupported("no parameterless constructor")
        section = unquote(attribute.argument("SectionName", 0))
        if not section:
            return Outcome.fatal(f"Options class '{raw.type_name}' has no configuration section.")

        return Outcome.ok(
            OptionsClassDescriptor(
                class_name=raw.type_name,
                is_interface=raw.is_interface,
                is_struct=raw.is_struct,
                properties=self._properties(raw),
                using_directives=raw.using_directives,
                config_section=section,
                documentation=self._documentation(raw.documentation, raw.file),
                **self._location(raw),
            )
        )

    def plain_class(self, raw: RawDeclaration) -> Outcome:
        if not raw.properties:
            return Outcome.unsupported("no properties")
        return Outcome.ok(
            ClassDescriptor(
                class_name=raw.type_name,
                is_interface=raw.is_interface,
                is_struct=raw.is_struct,
                properties=self._properties(raw),
                using_directives=raw.using_directives,
                **self._location(raw),
            )
        )

    def enum(self, raw: RawDeclaration) -> Outcome:
        return Outcome.ok(EnumDescriptor(name=raw.type_name, members=raw.members, **self._location(raw)))

    def registration(self, raw: RawDeclaration) -> Outcome:
        if not raw.member_name or any(p.type is None for p in raw.parameters):
            return Outcome.unsupported("not a registration method")
        registration = ServiceRegistrationDescriptor(
            class_name=raw.type_name,
            method_name=raw.member_name,
            type_parameters=[
                TypeParameterDescriptor(name=t.name, variance=t.variance, constraints=t.constraints)
                for t in raw.type_parameters
            ],
            parameters=[self._parameter(p) for p in raw.parameters],
            return_value=ReturnValueDescriptor(type=raw.return_type, type_full_name=raw.return_type),
            registrations=[
                RegistrationCall(name=r.name, type_arguments=r.type_arguments, argument_count=r.argument_count)
                for r in raw.registrations
            ],
            **self._location(raw),
        )
        registration.documentation = self._documentation(
            raw.documentation,
            raw.file,
            parameters=registration.parameters,
            type_parameters=registration.type_parameters,
            return_value=registration.return_value,
        )
        return Outcome.ok(registration)
