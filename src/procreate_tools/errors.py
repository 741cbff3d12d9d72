"""
Exceptions raised while reading and rendering a document.
"""

from typing import Optional


class ArchiveError(ValueError):
    """The keyed archive is malformed or cannot be decoded."""


class MissingKey(ArchiveError, KeyError):
    """A required key is absent from an archived record."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(key)

    def __str__(self) -> str:
        return "Missing required key %r" % self.key


class TypeMismatch(ArchiveError, TypeError):
    """A key is present but its value has the wrong shape or class."""

    def __init__(self, key: Optional[str], expected: str, actual: str):
        self.key = key
        self.expected = expected
        self.actual = actual
        super().__init__(key, expected, actual)

    def __str__(self) -> str:
        return "Type mismatch at %r: expected %s, got %s" % (
            self.key,
            self.expected,
            self.actual,
        )


class ContainerError(IOError):
    """The container file or one of its entries cannot be read."""

    def __init__(self, message: str, entry: Optional[str] = None):
        self.entry = entry
        super().__init__(message)


class TileError(ValueError):
    """A tile entry cannot be turned into pixels."""

    def __init__(self, message: str, entry: str):
        self.entry = entry
        super().__init__(message)


class TileNameError(TileError):
    """A tile entry name does not end in ``<col>~<row>``."""


class TileDecodeError(TileError):
    """A tile stream is corrupt or decompresses to the wrong length."""

    def __init__(self, message: str, entry: str, length: Optional[int] = None):
        self.length = length
        super().__init__(message, entry)


class RenderError(ValueError):
    """A layer reached the compositor without pixel data."""
