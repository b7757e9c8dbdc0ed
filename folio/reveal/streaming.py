from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Dict, Optional

from loguru import logger

from folio.reveal.engine import (
    REDACTION_MARKER,
    RevealEngine,
    TextChannel,
    UnitSplitter,
    character_units,
)
from folio.reveal.scheduler import AsyncioScheduler

RevealEvent = Dict[str, Any]


async def astream_reveal(
    text: str,
    *,
    interval_ms: float,
    redact_length: Optional[int] = None,
    marker: Optional[str] = REDACTION_MARKER,
    split_units: UnitSplitter = character_units,
) -> AsyncIterator[RevealEvent]:
    """Reveal `text` in real time on the running loop.

    Events use the same vocabulary as the server stream:
    - {type: 'reveal', data: <current prefix>}
    - {type: 'done'}
    """

    fragment = text[:redact_length] if redact_length is not None else text
    queue: asyncio.Queue[RevealEvent] = asyncio.Queue()

    def on_update(channel: TextChannel) -> None:
        queue.put_nowait({"type": "reveal", "data": channel.revealed})
        if channel.done:
            queue.put_nowait({"type": "done"})

    engine = RevealEngine(AsyncioScheduler(), marker=marker, split_units=split_units)
    channel = engine.start(fragment, interval_ms, on_update=on_update)

    try:
        while True:
            event = await queue.get()
            yield event
            if event["type"] == "done":
                break
    finally:
        if channel.active:
            logger.info("Reveal stream closed before completion; stopping channel.")
            engine.stop(channel)
