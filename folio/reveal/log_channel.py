from dataclasses import dataclass
from typing import List, Tuple

from loguru import logger

from folio.reveal.engine import RevealEngine, TextChannel, UnitSplitter, character_units
from folio.reveal.scheduler import Scheduler


@dataclass
class LogEntry:
    """One line of the running transcript."""

    text: str
    sequence_tag: int
    engine: RevealEngine

    @property
    def channel(self) -> TextChannel:
        return self.engine.current

    @property
    def display_text(self) -> str:
        if self.channel.done:
            return self.text
        return self.channel.revealed


class LogChannel:
    """
    An append-only transcript whose lines are revealed independently.

    Every entry gets its own RevealEngine. By default a new line does not
    interrupt older ones; with `freeze_previous` older lines jump to their
    full text as soon as a new line is appended.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        interval_ms: float,
        *,
        freeze_previous: bool = False,
        split_units: UnitSplitter = character_units,
    ):
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms!r}")
        self._scheduler = scheduler
        self.interval_ms = interval_ms
        self.freeze_previous = freeze_previous
        self._split_units = split_units
        self._entries: List[LogEntry] = []

    @property
    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, text: str, sequence_tag: int) -> LogEntry:
        if self.freeze_previous:
            for entry in self._entries:
                entry.engine.finish()

        engine = RevealEngine(self._scheduler, split_units=self._split_units)
        entry = LogEntry(text=text, sequence_tag=sequence_tag, engine=engine)
        self._entries.append(entry)
        engine.start(text, self.interval_ms)
        logger.debug(f"[{sequence_tag}] {text}")
        return entry

    def snapshot(self) -> List[Tuple[int, str]]:
        return [(entry.sequence_tag, entry.display_text) for entry in self._entries]

    def lines(self) -> List[str]:
        return [entry.display_text for entry in self._entries]
