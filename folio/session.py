from __future__ import annotations

import html
import re
from typing import Awaitable, Callable, List, Optional, Tuple

from loguru import logger

from folio.config import FolioSettings
from folio.content.models import Book, ContentRecord
from folio.errors import classify_fetch_error
from folio.reveal.engine import RevealEngine, TextChannel
from folio.reveal.log_channel import LogChannel
from folio.reveal.scheduler import Scheduler
from folio.symdef.definition_extractor import DefinitionExtractor
from folio.symdef.models import ResolvedDefinition

COORDINATE_HOST = "https://carpvs.com"
DEFAULT_SLUG = "lexDict"
BINDLE_SIZE = 3
LEARNED_SPELLS = ("TraceThread", "InvokeGlossolalia")

# (ok, record) for a query; raises on transport or payload errors.
FetchFn = Callable[[str], Awaitable[Tuple[bool, ContentRecord]]]


def display_coordinate(url: Optional[str]) -> str:
    """
    Maps a content coordinate to its public page.

    Examples:
        - '' -> 'https://carpvs.com/lexDict'
        - 'https://host/books/Aleph.md' -> 'https://carpvs.com/Aleph'
    """
    if not url:
        return f"{COORDINATE_HOST}/{DEFAULT_SLUG}"
    match = re.search(r"/([^/]+?)(?:\.md)?$", url)
    slug = match.group(1) if match else DEFAULT_SLUG
    return f"{COORDINATE_HOST}/{slug}"


def decode_html_entities(text: str) -> str:
    return html.unescape(text)


class FolioSession:
    """
    Caller-owned state for one interactive session.

    Holds everything the front-end displays and threads it into the engines:
    the fallback document reveal, the console transcript and the definitions
    resolved for the current document.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        settings: Optional[FolioSettings] = None,
        fetch: Optional[FetchFn] = None,
        extractor: Optional[DefinitionExtractor] = None,
        freeze_previous_log: bool = False,
    ):
        self.settings = settings or FolioSettings()
        self._fetch = fetch
        self._extractor = extractor or DefinitionExtractor()

        self.iteration = 1
        self.coordinate = ""
        self.valency: float = 0
        self.concentration: float = 0
        self.links: List[str] = []
        self.fallback: Optional[str] = None
        self.book_bindle: List[Book] = []
        self.lex_defs: List[str] = []
        self.definitions: List[ResolvedDefinition] = []
        self.spells: List[str] = list(LEARNED_SPELLS)

        self.fragment_engine = RevealEngine(scheduler)
        self.console = LogChannel(
            scheduler,
            self.settings.log_interval_ms,
            freeze_previous=freeze_previous_log,
        )

    @property
    def current_book(self) -> Optional[Book]:
        return self.book_bindle[-1] if self.book_bindle else None

    @property
    def typed_text(self) -> str:
        if self.fallback is None:
            return ""
        return decode_html_entities(self.fragment_engine.display)

    def console_lines(self) -> List[str]:
        return self.console.lines()

    def add_message(self, text: str, sequence_tag: Optional[int] = None) -> None:
        tag = self.iteration if sequence_tag is None else sequence_tag
        self.console.append(text, tag)

    def load_initial(self, content: Optional[str]) -> Optional[TextChannel]:
        """Shows initial content only when no fragment is on display yet."""
        if content and not self.fallback:
            return self._set_fallback(content)
        return None

    def _set_fallback(self, text: Optional[str]) -> Optional[TextChannel]:
        if not text:
            self.fallback = None
            self.fragment_engine.stop()
            return None
        self.fallback = text[: self.settings.redact_length]
        return self.fragment_engine.start(self.fallback, self.settings.unit_interval_ms)

    def apply_record(
        self,
        query: str,
        record: ContentRecord,
        ok: bool = True,
        sequence_tag: Optional[int] = None,
    ) -> None:
        """Folds one content-service answer into the session."""
        self.links = list(record.links)
        self.coordinate = record.coordinate
        self.valency = record.valency
        self.concentration = record.concentration

        document = record.document
        self._set_fallback(document)
        self.definitions = self._extractor.extract(record.lex_defs, document or "")

        if not ok or (not record.term and not record.fallback):
            self.add_message(f'Could not summon a Book for "{query}".Your Journey Ends, Hear', sequence_tag)
            return

        if record.term:
            book = Book(title=record.term, coordinate=record.coordinate, potency=record.potency)
            self.book_bindle = [*self.book_bindle[-(BINDLE_SIZE - 1):], book]
            self.lex_defs.append(f"{record.term} ({record.potency})")
            self.add_message(f"< You open a new Book: {book.title}", sequence_tag)
        else:
            self.add_message("> You found an unindexed folio...", sequence_tag)

    async def fetch_book(self, query: str, sequence_tag: Optional[int] = None) -> None:
        if not query.strip():
            return
        if self._fetch is None:
            raise RuntimeError("FolioSession was created without a fetch function.")
        try:
            ok, record = await self._fetch(query)
        except Exception as e:
            err = classify_fetch_error(e)
            logger.error(f"Fetching '{query}' failed [{err.code} @ {err.stage}]: {err.message}")
            self.add_message("An unexpected error occurred while fetching the Book.", sequence_tag)
            return
        self.apply_record(query, record, ok=ok, sequence_tag=sequence_tag)

    async def submit(self, user_input: str) -> None:
        """Handles one line typed by the user."""
        text = user_input.strip()
        if not text:
            return
        self.add_message(f'You query: "{user_input}"')
        await self.fetch_book(text)

    async def handle_option(self, option: int) -> None:
        """Advances the iteration; messages keep the iteration the option was chosen in."""
        tag = self.iteration
        self.iteration += 1
        if option == 1:
            self.add_message("You open the Ascii overview map...", tag)
        elif option == 2:
            self.add_message("You close the Book and return it to the shelf.", tag)
        else:
            await self.fetch_book(f"option {option}", sequence_tag=tag)

    def status(self) -> dict:
        """A JSON-friendly view of everything the front-end shows."""
        book = self.current_book
        return {
            "coordinate": display_coordinate(self.coordinate),
            "iteration": self.iteration,
            "lexDefs": "; ".join(self.lex_defs) or "None yet",
            "bookBindle": [b.to_dict() for b in self.book_bindle],
            "currentBook": book.to_dict() if book else None,
            "valency": self.valency,
            "concentration": self.concentration,
            "links": list(self.links),
            "definitions": [d.to_dict() for d in self.definitions],
            "fragment": self.typed_text,
            "console": self.console_lines(),
            "spells": ", ".join(self.spells),
        }
