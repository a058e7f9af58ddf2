import asyncio
import logging
import time
from typing import Callable

from career_eval.services.session_store import SessionRegistry

LOGGER = logging.getLogger(__name__)


def sweep_once(
    registry: SessionRegistry,
    retention_seconds: float,
    clock: Callable[[], float] = time.time,
) -> int:
    removed = registry.sweep(clock(), retention_seconds)
    if removed:
        LOGGER.info("Cleaned up %d old sessions. Active sessions: %d", removed, registry.count())
    return removed


async def run_session_sweeper(
    registry: SessionRegistry,
    interval_seconds: float,
    retention_seconds: float,
    clock: Callable[[], float] = time.time,
) -> None:
    LOGGER.debug(
        "Session sweeper started (interval=%ss, retention=%ss)",
        interval_seconds,
        retention_seconds,
    )
    while True:
        await asyncio.sleep(interval_seconds)
        sweep_once(registry, retention_seconds, clock)
