"""Normalized metadata models.

The normalizer converts raw front-end declarations into these models;
every writer and generator downstream works on them only.
"""

import re
from enum import Enum

from pydantic import BaseModel, Field


class ProjectFamily(str, Enum):
    LEGACY = "legacy-framework"
    STANDARD = "standard"
    MODERN = "modern"
    UNKNOWN = "unknown"


class ProjectInfo(BaseModel):
    """The project that owns a source file."""

    name: str
    path: str = ""
    target_framework: str = ""
    family: ProjectFamily = ProjectFamily.UNKNOWN
    is_test_project: bool = False


def repository_of(file: str) -> str:
    """Return the path segment right before the first 'src' segment.

    Falls back to the last segment (the file name) when the path has no
    'src' directory.
    """
    parts = [p for p in re.split(r"[\\/]", file) if p]
    head = []
    for part in parts:
        if part.lower() == "src":
            break
        head.append(part)
    return head[-1] if head else ""


class _SourceBound(BaseModel):
    """Common location fields of everything extracted from a source file."""

    namespace: str = ""
    file: str = ""
    file_relative: str = ""
    project: ProjectInfo | None = None

    @property
    def repository(self) -> str:
        return repository_of(self.file)

    @property
    def project_name(self) -> str:
        return self.project.name if self.project else ""


class ParameterDescriptor(BaseModel):
    """A parameter of an operation or registration method."""

    name: str
    type: str
    type_full_name: str = ""
    is_optional: bool = False
    documentation: str = ""
    example: str | None = None  # literal override from the doc comment


class ReturnValueDescriptor(BaseModel):
    type: str = "void"
    type_full_name: str = ""
    documentation: str = ""


class TypeParameterDescriptor(BaseModel):
    name: str
    variance: str = ""
    constraints: list[str] = []
    documentation: str = ""

    def __str__(self) -> str:
        text = f"{self.variance} {self.name}".strip()
        if self.constraints:
            text += " : " + ", ".join(self.constraints)
        return text


class OperationDescriptor(_SourceBound):
    """A documented callable endpoint extracted from an annotated method.

    Parameter 0 is always the implicit target content parameter.
    """

    class_name: str
    method_name: str
    operation_name: str
    category: str = "Uncategorized"
    category_in_link: str = "uncategorized"
    link_slug: str = ""
    is_action: bool = False
    icon: str | None = None
    description: str = ""
    documentation: str = ""
    parameters: list[ParameterDescriptor] = []
    return_value: ReturnValueDescriptor = Field(default_factory=ReturnValueDescriptor)
    allowed_roles: list[str] = []
    required_permissions: list[str] = []
    required_policies: list[str] = []
    scenarios: list[str] = []
    content_types: list[str] = []

    @property
    def http_method(self) -> str:
        return "POST" if self.is_action else "GET"

    @property
    def project_family(self) -> ProjectFamily:
        return self.project.family if self.project else ProjectFamily.UNKNOWN


class PropertyDescriptor(BaseModel):
    """A public property of a class or options class."""

    name: str
    type: str
    type_full_name: str = ""
    is_enum: bool = False
    is_backend_only: bool = False
    has_getter: bool = True
    has_setter: bool = True
    initializer: str | None = None
    documentation: str = ""

    @property
    def default_value(self) -> str | None:
        if self.initializer is None:
            return None
        return self.initializer.replace("=", "", 1).strip()


class ClassDescriptor(_SourceBound):
    """A plain class, used to resolve nested-object property types."""

    class_name: str
    is_interface: bool = False
    is_struct: bool = False
    properties: list[PropertyDescriptor] = []
    using_directives: list[str] = []

    @property
    def full_name(self) -> str:
        return f"{self.namespace}.{self.class_name}" if self.namespace else self.class_name


class OptionsClassDescriptor(ClassDescriptor):
    """A configuration class bound to a hierarchical configuration section."""

    config_section: str
    documentation: str = ""
    categories: list[str] = []
    link_slug: str = ""


class EnumDescriptor(_SourceBound):
    name: str
    members: list[str] = []

    @property
    def full_name(self) -> str:
        return f"{self.namespace}.{self.name}" if self.namespace else self.name


class RegistrationCall(BaseModel):
    """A service-collection call made inside a registration method."""

    name: str
    type_arguments: list[str] = []
    argument_count: int = 0

    def __str__(self) -> str:
        generic = f"<{', '.join(self.type_arguments)}>" if self.type_arguments else ""
        return f"{self.name}{generic}({', '.join('...' for _ in range(self.argument_count))})"


class ServiceRegistrationDescriptor(_SourceBound):
    """An extension method that registers services."""

    class_name: str
    method_name: str
    type_parameters: list[TypeParameterDescriptor] = []
    parameters: list[ParameterDescriptor] = []
    return_value: ReturnValueDescriptor = Field(default_factory=ReturnValueDescriptor)
    registrations: list[RegistrationCall] = []
    documentation: str = ""
    link_slug: str = ""

    @property
    def method_signature(self) -> str:
        generic = ""
        if self.type_parameters:
            generic = f"<{', '.join(t.name for t in self.type_parameters)}>"
        params = ", ".join(f"{p.type} {p.name}" for p in self.parameters)
        return f"{self.method_name}{generic}({params})"
