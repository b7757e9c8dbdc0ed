from folio.reveal.engine import (
    REDACTION_MARKER,
    ChannelState,
    RevealEngine,
    TextChannel,
    character_units,
    word_units,
)
from folio.reveal.log_channel import LogChannel, LogEntry
from folio.reveal.scheduler import AsyncioScheduler, Scheduler, VirtualClock

__all__ = [
    "REDACTION_MARKER",
    "AsyncioScheduler",
    "ChannelState",
    "LogChannel",
    "LogEntry",
    "RevealEngine",
    "Scheduler",
    "TextChannel",
    "VirtualClock",
    "character_units",
    "word_units",
]
