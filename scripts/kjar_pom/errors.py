"""Exception types raised while reading, merging, and writing pom.xml content."""

from typing import Optional


class PomContentError(Exception):
    """Base class for all pom.xml content handling errors."""


class MalformedDescriptorError(PomContentError):
    """Raised when descriptor text is not a well-formed XML document.

    Attributes:
        line: 1-based line of the parse failure, or ``None`` if unknown.
        column: 0-based column of the parse failure, or ``None`` if unknown.
    """

    def __init__(self, message: str, position: Optional[tuple] = None):
        self.line, self.column = position if position else (None, None)
        if self.line is not None:
            message = f"{message} (line {self.line}, column {self.column})"
        super().__init__(message)


class IncompleteIdentityError(PomContentError):
    """Raised when an identity field is missing at the top level and in ``<parent>``.

    Attributes:
        field: The missing element name (``groupId``, ``artifactId`` or ``version``).
    """

    def __init__(self, field: str):
        self.field = field
        super().__init__(
            f"Missing <{field}>: not declared in the project or its <parent>"
        )


class PluginVersionUnresolved(PomContentError):
    """Raised when the packaged kie-maven-plugin version cannot be read."""
