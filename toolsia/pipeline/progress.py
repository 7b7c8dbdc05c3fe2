from __future__ import annotations

import logging
from typing import Dict, List, Optional

from toolsia.pipeline.state import ProgressCallback

logger = logging.getLogger(__name__)

STAGE_WEIGHTS: Dict[str, int] = {
    "decoding": 20,
    "resampling": 20,
    "transforming": 40,
    "encoding": 20,
}


class StageProgress:
    """
    Stage-weighted progress. Percentages only ever go up and the last
    completed stage reports 100. A stage with no work gets no weight.
    """

    def __init__(
        self,
        callback: Optional[ProgressCallback] = None,
        *,
        has_transform: bool = True,
    ) -> None:
        self._callback = callback
        weights = dict(STAGE_WEIGHTS)
        if not has_transform:
            weights["transforming"] = 0
        total = sum(weights.values())

        self._done_at: Dict[str, int] = {}
        running = 0
        for stage, w in weights.items():
            running += w
            self._done_at[stage] = round(running * 100 / total)
        self.percent = 0
        self.history: List[int] = []

    def start(self) -> None:
        self._emit("idle", 0)

    def stage_done(self, stage: str) -> None:
        self._emit(stage, self._done_at[stage])

    def _emit(self, stage: str, percent: int) -> None:
        percent = max(self.percent, percent)
        self.percent = percent
        self.history.append(percent)
        if self._callback is None:
            return
        try:
            self._callback(stage, percent)
        except Exception:
            # A broken progress listener must not fail the run
            logger.exception("Progress callback raised at %s", stage)
