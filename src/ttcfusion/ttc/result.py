"""Tagged time-to-collision outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TTCStatus(Enum):
    """Outcome of a single time-to-collision estimate."""

    OK = "OK"
    EMPTY_INPUT = "EMPTY_INPUT"
    NON_POSITIVE_CLOSING = "NON_POSITIVE_CLOSING"
    DEGENERATE_QUADRATIC = "DEGENERATE_QUADRATIC"
    DIVISION_GUARD = "DIVISION_GUARD"


@dataclass(frozen=True)
class TTCResult:
    """Time-to-collision estimate or an explicit "not computable" marker.

    Attributes:
        status: TTCStatus.OK when `seconds` holds a value, otherwise the
            reason the estimate could not be computed
        seconds: Estimated time-to-collision in seconds, None unless OK
    """

    status: TTCStatus
    seconds: float | None = None

    def __post_init__(self) -> None:
        if self.status is TTCStatus.OK and self.seconds is None:
            raise ValueError("An OK result requires a value in seconds")
        if self.status is not TTCStatus.OK and self.seconds is not None:
            raise ValueError(f"A {self.status.value} result cannot carry a value")

    @classmethod
    def ok(cls, seconds: float) -> TTCResult:
        return cls(status=TTCStatus.OK, seconds=float(seconds))

    @classmethod
    def not_computable(cls, status: TTCStatus) -> TTCResult:
        if status is TTCStatus.OK:
            raise ValueError("Use TTCResult.ok() for computable results")
        return cls(status=status)

    @property
    def is_computable(self) -> bool:
        """Return True if the result carries a value."""
        return self.status is TTCStatus.OK

    def __str__(self) -> str:
        if self.is_computable:
            return f"{self.seconds:.3f}s"
        return f"n/a ({self.status.value})"
