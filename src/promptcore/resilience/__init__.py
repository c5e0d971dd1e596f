"""
Error resilience: classification, recovery strategies and the error ledger.
"""

from .guards import GuardedResult
from .handler import (
    ErrorCallback,
    ErrorHandler,
    ErrorStat,
    RecoveryAssessment,
    RecoveryStrategy,
)

__all__ = [
    "ErrorCallback",
    "ErrorHandler",
    "ErrorStat",
    "GuardedResult",
    "RecoveryAssessment",
    "RecoveryStrategy",
]
