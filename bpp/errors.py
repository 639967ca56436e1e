"""Error taxonomy for instance parsing and packing."""

from __future__ import annotations


class BinPackingError(Exception):
    """Base class for all bin packing errors."""


class DatasetIOError(BinPackingError):
    """A required file or directory could not be read."""

    def __init__(self, path: object, reason: str) -> None:
        super().__init__(str(path), reason)
        self.path = str(path)
        self.reason = reason

    def __str__(self) -> str:
        return f"{self.path}: {self.reason}"


class InstanceFormatError(BinPackingError):
    """Base class for errors raised while parsing instance text.

    ``line`` is the 1-based source line when known; ``path`` is filled in by
    the file loaders so messages name the offending file.
    """

    def __init__(self, reason: str, line: int | None = None, path: object | None = None) -> None:
        super().__init__(reason, line)
        self.reason = reason
        self.line = line
        self.path = str(path) if path is not None else None

    def __str__(self) -> str:
        location = ":".join(str(part) for part in (self.path, self.line) if part is not None)
        if location:
            return f"{location}: {self.reason}"
        return self.reason


class EmptyInputError(InstanceFormatError):
    """The input has no usable content."""


class MalformedInputError(InstanceFormatError):
    """Token count or token type does not match the layout."""


class InfeasibleItemError(InstanceFormatError):
    """An item is larger than the bin capacity."""


class EngineInvariantError(BinPackingError):
    """A produced packing violates the coverage or capacity invariant."""
