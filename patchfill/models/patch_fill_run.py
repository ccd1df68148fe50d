from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import List

from .pass_parameters import PassParameters
from .rect import Rect


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PatchFillRun:
    """
    Bookkeeping for one apply call: Idle → Running(pass 1..N) → Done | Failed.
    Lives only as long as the call.
    """
    regions: List[Rect]
    params: PassParameters
    state: RunState = RunState.IDLE
    passes_completed: int = 0
    sources: List[List[Rect]] = field(default_factory=list) # donor rects, one list per pass
    error: Exception | None = None

    def start(self) -> None:
        if self.state is not RunState.IDLE:
            raise RuntimeError(f"Run already {self.state.value}")
        self.state = RunState.RUNNING

    def finish_pass(self, pass_sources: List[Rect]) -> None:
        self.sources.append(pass_sources)
        self.passes_completed += 1

    def finish(self) -> None:
        self.state = RunState.DONE

    def fail(self, error: Exception) -> None:
        self.state = RunState.FAILED
        self.error = error
