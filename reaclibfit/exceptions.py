"""Exception hierarchy for rate construction, lookup and fitting."""
from __future__ import annotations

class ReaclibError(RuntimeError):
    """Base class for domain specific exceptions."""


class UnopenedFileException(ReaclibError):
    pass


class DataNotFoundException(ReaclibError):
    pass


class IncorrectValueException(ReaclibError):
    pass


class ResonanceIndexException(IncorrectValueException):
    pass


class FitException(ReaclibError):
    pass
