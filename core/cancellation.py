# core/cancellation.py
"""Cancellation token passed explicitly through the ingestion call chain"""
import asyncio
import logging
from typing import Optional

from config import settings
from core.enums import IngestionStage
from core.exceptions import OperationCancelled

logger = logging.getLogger(settings.LOGGER_NAME)


class CancellationToken:
    """
    Set once by the owner (e.g. a client-disconnect watcher), checked by the
    pipeline at stage boundaries. Checking never blocks.
    """

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "client disconnected") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self, stage: IngestionStage) -> None:
        if self._event.is_set():
            logger.info(f"Processing aborted {stage.value}: {self.reason}")
            raise OperationCancelled(stage)


def check(token: Optional[CancellationToken], stage: IngestionStage) -> None:
    """No-op when the caller did not supply a token."""
    if token is not None:
        token.raise_if_cancelled(stage)
