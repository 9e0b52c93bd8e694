"""
Stage tracking for the extraction pipeline.
Records which stages a request visited, in order and with timings, and
enforces the legal stage transitions.
"""
import time
from enum import Enum
from typing import Dict, Optional, List, FrozenSet
from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    """Extraction stages in order of execution"""
    FETCHING = "fetching"
    DETECTING = "detecting"
    FAST_CONVERT = "fast_convert"
    SLOW_EXTRACT = "slow_extract"
    VALIDATING = "validating"
    REPAIRING = "repairing"
    ENHANCING = "enhancing"
    DONE = "done"
    FAILED = "failed"


# Stages that may follow each stage; FAILED is reachable from anywhere
ALLOWED_TRANSITIONS: Dict[Optional[PipelineStage], FrozenSet[PipelineStage]] = {
    None: frozenset({PipelineStage.FETCHING}),
    PipelineStage.FETCHING: frozenset({PipelineStage.DETECTING, PipelineStage.SLOW_EXTRACT}),
    PipelineStage.DETECTING: frozenset({PipelineStage.FAST_CONVERT, PipelineStage.SLOW_EXTRACT}),
    PipelineStage.FAST_CONVERT: frozenset({PipelineStage.VALIDATING}),
    PipelineStage.SLOW_EXTRACT: frozenset({PipelineStage.VALIDATING}),
    PipelineStage.VALIDATING: frozenset({PipelineStage.REPAIRING, PipelineStage.ENHANCING, PipelineStage.DONE}),
    PipelineStage.REPAIRING: frozenset({PipelineStage.ENHANCING, PipelineStage.DONE}),
    PipelineStage.ENHANCING: frozenset({PipelineStage.DONE}),
    PipelineStage.DONE: frozenset(),
    PipelineStage.FAILED: frozenset(),
}


@dataclass
class StageEvent:
    """One visited stage"""
    stage: PipelineStage
    timestamp: float
    message: Optional[str] = None
    duration_ms: Optional[int] = None


class StageTracker:
    """Tracks one extraction's progress through the pipeline"""

    def __init__(self, extraction_id: str):
        self.extraction_id = extraction_id
        self.start_time = time.time()
        self.events: List[StageEvent] = []

    @property
    def current(self) -> Optional[PipelineStage]:
        return self.events[-1].stage if self.events else None

    @property
    def stages(self) -> List[str]:
        return [event.stage.value for event in self.events]

    def enter(self, stage: PipelineStage, message: Optional[str] = None) -> StageEvent:
        """Move to ``stage``, closing the timing of the previous one"""
        if stage != PipelineStage.FAILED and stage not in ALLOWED_TRANSITIONS[self.current]:
            raise ValueError(f"Illegal pipeline transition {self.current} -> {stage.value}")

        now = time.time()
        if self.events:
            previous = self.events[-1]
            previous.duration_ms = int((now - previous.timestamp) * 1000)

        event = StageEvent(stage=stage, timestamp=now, message=message)
        self.events.append(event)
        logger.debug(f"[{self.extraction_id}] {stage.value}{': ' + message if message else ''}")
        return event

    def fail(self, error: Exception) -> StageEvent:
        return self.enter(PipelineStage.FAILED, f"{error.__class__.__name__}: {error}")

    def elapsed_ms(self) -> int:
        return int((time.time() - self.start_time) * 1000)
