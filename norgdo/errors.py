"""
Error taxonomy for norgdo.

ParseError and its subclasses come out of the parser; NotFoundError and
IoFailure come out of the task store. Everything derives from NorgdoError so
the front end can catch one type.
"""
from typing import Optional


class NorgdoError(Exception):
    """Base class for every error raised by norgdo."""
    pass


class ParseError(NorgdoError):
    """Raised when a task file cannot be turned into a Task."""
    pass


class MissingTitleError(ParseError):
    """No heading line before the first TODO item or end of input."""

    def __init__(self, message: str = "No title heading found"):
        super().__init__(message)


class UnknownMarkerError(ParseError):
    """A TODO line has the right shape but an unrecognized state glyph."""

    def __init__(self, char: str, line_number: Optional[int] = None):
        self.char = char
        self.line_number = line_number
        where = f"line {line_number}: " if line_number is not None else ""
        super().__init__(f"{where}unknown TODO marker {char!r}")


class InvalidNestingError(ParseError):
    """A TODO item is nested more than one level below its predecessor."""

    def __init__(self, line_number: int, depth: int, expected_max: int):
        self.line_number = line_number
        self.depth = depth
        self.expected_max = expected_max
        super().__init__(
            f"line {line_number}: TODO depth {depth} exceeds maximum {expected_max}"
        )


class NotFoundError(NorgdoError, LookupError):
    """Unknown task id or a todo path that does not resolve."""
    pass


class IoFailure(NorgdoError):
    """Reading or writing a task file failed. The OS error is kept as `cause`."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)
