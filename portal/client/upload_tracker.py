"""Tracks questions with an upload in flight.

Membership is counted per question so two overlapping uploads for the same
field keep it marked until both finish. `wait_drained` resolves as soon as
nothing is uploading.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from typing import FrozenSet

logger = logging.getLogger(__name__)


class UploadTracker:
    def __init__(self) -> None:
        self._active: Counter[str] = Counter()
        self._drained = asyncio.Event()
        self._drained.set()

    def begin(self, question_id: str) -> None:
        self._active[question_id] += 1
        self._drained.clear()

    def finish(self, question_id: str) -> None:
        count = self._active.get(question_id, 0)
        if count <= 0:
            logger.warning("upload_finish_unknown q_id=%s", question_id)
        elif count == 1:
            del self._active[question_id]
        else:
            self._active[question_id] = count - 1
        if not self._active:
            self._drained.set()

    @property
    def question_ids(self) -> FrozenSet[str]:
        return frozenset(self._active)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._active

    def __len__(self) -> int:
        return len(self._active)

    async def wait_drained(self) -> None:
        await self._drained.wait()


__all__ = ["UploadTracker"]
