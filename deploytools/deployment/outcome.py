"""Result variants for best-effort operations (backup, cleanup)."""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Ok:
    """Operation completed. `value` is the produced path or object."""

    value: Any = None

    def is_degraded(self):
        return False


@dataclass(frozen=True)
class Degraded:
    """Operation failed or partially failed, and the pipeline carries on.

    Attributes:
        reason: Human readable explanation, printed as a warning.
        value: Whatever was produced before the failure, if anything.
    """

    reason: str
    value: Optional[Any] = None

    def is_degraded(self):
        return True


@dataclass(frozen=True)
class Skipped:
    """Operation was not needed (e.g. no live release to back up)."""

    reason: str

    def is_degraded(self):
        return False
