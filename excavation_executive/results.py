"""
Terminal outcomes of an executive cycle
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Optional


class Outcome(Enum):
    """The three terminal states of a dispatch or localization cycle"""
    SUCCEEDED = auto()
    PREEMPTED = auto()
    ABORTED = auto()


class ExecutiveState(Enum):
    """Lifecycle of a single-goal executive"""
    IDLE = auto()
    DISPATCHING = auto()


@dataclass
class CycleResult:
    """Result of one executive cycle"""
    outcome: Outcome
    message: str
    duration: float = 0.0
    error_code: Optional[str] = None
    data: Optional[Any] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def succeeded(self) -> bool:
        return self.outcome is Outcome.SUCCEEDED

    @property
    def preempted(self) -> bool:
        return self.outcome is Outcome.PREEMPTED

    @property
    def aborted(self) -> bool:
        return self.outcome is Outcome.ABORTED
