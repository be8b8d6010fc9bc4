"""
Exception types for ztarcc.

Build-time problems (``ParseError``, ``BuildError``) never reach a running
converter. ``DecodeError`` means the compiled dictionary cannot be used at
all. ``ProfileNotFound`` is the only error a caller is expected to recover
from.
"""

from pathlib import Path
from typing import Iterable, Tuple, Union


class ZtarccError(Exception):
    """Base class for all ztarcc errors."""
    pass


class ParseError(ZtarccError):
    """Raised when a dictionary source line is malformed."""

    def __init__(self, path: Union[str, Path], line_number: int, reason: str):
        self.path = Path(path)
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"{self.path}:{line_number}: {reason}")


class BuildError(ZtarccError):
    """Raised when the dictionary compiler cannot produce an artifact."""
    pass


class DecodeError(ZtarccError):
    """Raised when the compiled dictionary artifact is corrupt or from another format version."""
    pass


class ProfileNotFound(ZtarccError, KeyError):
    """Raised when a conversion profile name is not in the registry."""

    def __init__(self, name: str, available: Iterable[str] = ()):
        self.name = name
        self.available: Tuple[str, ...] = tuple(sorted(available))
        super().__init__(name)

    def __str__(self) -> str:
        if self.available:
            return f"unknown profile {self.name!r} (available: {', '.join(self.available)})"
        return f"unknown profile {self.name!r}"
