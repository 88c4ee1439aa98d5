"""Exception types raised by the documentation generator."""


class DocGenError(Exception):
    """Base class for all generator errors."""

    pass


class InputError(DocGenError):
    """Raised when the input path is missing or has an unsupported file type."""

    pass


class DeclarationError(DocGenError):
    """Raised when a declaration dump does not match the expected structure."""

    pass


class DocumentationError(DocGenError):
    """Raised when a documentation comment is not well-formed markup."""

    pass


class ClassificationError(DocGenError):
    """Raised when an options class has no entry in the classification table."""

    def __init__(self, class_name: str):
        super().__init__(f"Options class '{class_name}' is not categorized.")
        self.class_name = class_name
