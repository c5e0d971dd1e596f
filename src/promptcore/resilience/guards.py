"""Tagged result type returned by guarded operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from .handler import RecoveryStrategy

T = TypeVar("T")


@dataclass
class GuardedResult(Generic[T]):
    """Outcome of ErrorHandler.attempt().

    Exactly one of value/error is meaningful, selected by ok. A failed
    result also carries the recovery strategy computed for the error.
    """

    ok: bool
    value: T | None = None
    error: Exception | None = None
    strategy: RecoveryStrategy | None = None

    @classmethod
    def success(cls, value: T) -> GuardedResult[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: Exception, strategy: RecoveryStrategy) -> GuardedResult[Any]:
        return cls(ok=False, error=error, strategy=strategy)

    def unwrap(self) -> T:
        """Return the value, re-raising the captured error on failure."""
        if not self.ok:
            if self.error is None:
                raise RuntimeError("Guarded operation failed without a captured error")
            raise self.error
        return self.value  # type: ignore[return-value]
