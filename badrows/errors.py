"""
Exception types raised by the bad rows processor.
"""
from typing import Optional


class BadRowsError(Exception):
    """Base class for all bad rows processor errors."""


class CompilationError(BadRowsError):
    """The harnessed user script could not be compiled.

    The engine diagnostic is kept as ``__cause__`` when there is one, and
    the position inside the user's own source is exposed as ``lineno`` and
    ``offset`` (both ``None`` when unknown).
    """

    def __init__(self, message: str, lineno: Optional[int] = None,
                 offset: Optional[int] = None):
        super().__init__(message)
        self.lineno = lineno
        self.offset = offset

    def __str__(self) -> str:
        msg = super().__str__()
        if self.lineno is not None:
            return f"{msg} (line {self.lineno})"
        return msg


class EvaluationTimeout(BaseException):
    """Raised inside a running user script once its deadline has passed.

    Derives from BaseException so ``except Exception`` in a user script
    does not stop it.
    """


class BadRowFormatError(BadRowsError, ValueError):
    """A bad row could not be parsed from its JSON representation."""
