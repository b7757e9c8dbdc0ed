import argparse
import asyncio
import json
import sys
from pathlib import Path

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from folio.config import FolioSettings, load_settings
from folio.content.client import ContentClient
from folio.reveal.scheduler import AsyncioScheduler
from folio.reveal.streaming import astream_reveal
from folio.session import FolioSession
from folio.symdef.definition_extractor import DefinitionExtractor
from folio.symdef.models import DefinitionSource, ResolvedDefinition


def _configure_logging(verbose: bool = False) -> None:
    """Send loguru output to stderr so stdout only carries results."""
    logger.remove()
    level = "DEBUG" if verbose else "WARNING"
    logger.add(sys.stderr, level=level)


def load_sources(path: Path):
    """Loads a JSON list of definition sources (or an object with `lexDefs`)."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("lexDefs", [])
    return TypeAdapter(list[DefinitionSource]).validate_python(data)


def format_definitions(definitions: list[ResolvedDefinition]) -> str:
    if not definitions:
        return "(no definitions)"
    return "\n".join(f"{d.name} [{d.usage}]: {d.definition}" for d in definitions)


def run_extract(args) -> int:
    try:
        sources = load_sources(Path(args.sources))
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Could not load definition sources from {args.sources}: {e}")
        return 1
    try:
        document = Path(args.document).read_text(encoding="utf-8") if args.document else ""
    except OSError as e:
        logger.error(f"Could not read document {args.document}: {e}")
        return 1

    definitions = DefinitionExtractor().extract(sources, document)
    payload = json.dumps([d.to_dict() for d in definitions], indent=2, ensure_ascii=False)
    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(payload, encoding="utf-8")
        logger.success(f"Saved {len(definitions)} definitions to {output_path}")
    else:
        print(payload)
    return 0


async def run_reveal(args, settings: FolioSettings) -> int:
    if args.file:
        try:
            text = Path(args.file).read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"Could not read {args.file}: {e}")
            return 1
    else:
        text = args.text or ""

    shown = 0
    async for event in astream_reveal(
        text,
        interval_ms=args.interval_ms or settings.unit_interval_ms,
        redact_length=settings.redact_length,
    ):
        if event["type"] == "reveal":
            sys.stdout.write(event["data"][shown:])
            sys.stdout.flush()
            shown = len(event["data"])
    sys.stdout.write("\n")
    return 0


async def _follow_fragment(session: FolioSession, poll_s: float) -> None:
    shown = 0
    while True:
        current = session.fragment_engine.display
        sys.stdout.write(current[shown:])
        sys.stdout.flush()
        shown = len(current)
        channel = session.fragment_engine.current
        if channel is None or not channel.active:
            break
        await asyncio.sleep(poll_s)
    sys.stdout.write("\n")


async def run_query(args, settings: FolioSettings) -> int:
    scheduler = AsyncioScheduler()
    async with ContentClient(
        settings.service_url, config={"timeout": settings.http_timeout}
    ) as client:
        session = FolioSession(scheduler, settings=settings, fetch=client.fetch)
        await session.submit(args.term)

    status = session.status()
    print(f"Co-Ordinate: {status['coordinate']}")
    print(f"lexDefs: {status['lexDefs']}")
    print(format_definitions(session.definitions))

    if session.fallback is not None:
        if args.no_reveal:
            session.fragment_engine.finish()
        await _follow_fragment(session, settings.unit_interval_ms / 1000.0)

    for entry in session.console.entries:
        entry.engine.finish()
    for line in session.console_lines():
        print(f"> {line}")
    if session.links:
        print("Exits: " + ", ".join(session.links))
    return 0


def run_serve(args) -> int:
    import uvicorn

    uvicorn.run("folio.server.app:app", host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Folio: definition extraction and progressive text reveal.",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Available commands")

    # --- 'extract' command ---
    parser_extract = subparsers.add_parser(
        "extract", help="Resolve definitions from a document offline."
    )
    parser_extract.add_argument(
        "--sources", required=True, help="JSON file with a list of definition sources."
    )
    parser_extract.add_argument("--document", help="Text file to mine for definitions.")
    parser_extract.add_argument("-o", "--output", help="Write JSON here instead of stdout.")

    # --- 'reveal' command ---
    parser_reveal = subparsers.add_parser("reveal", help="Reveal text one character at a time.")
    source_group = parser_reveal.add_mutually_exclusive_group(required=True)
    source_group.add_argument("text", nargs="?", help="Text to reveal.")
    source_group.add_argument("--file", help="Reveal the contents of this file.")
    parser_reveal.add_argument(
        "--interval-ms", type=float, help="Milliseconds per character (default from FOLIO_UNIT_INTERVAL_MS)."
    )

    # --- 'query' command ---
    parser_query = subparsers.add_parser("query", help="Query the content service for a term.")
    parser_query.add_argument("term", help="Term, phrase or Book to look up.")
    parser_query.add_argument(
        "--no-reveal", action="store_true", help="Print the fragment at once."
    )

    # --- 'serve' command ---
    parser_serve = subparsers.add_parser("serve", help="Run the HTTP server.")
    parser_serve.add_argument("--host", default="127.0.0.1")
    parser_serve.add_argument("--port", type=int, default=8000)

    return parser


async def main(args) -> int:
    """Runs the selected async command."""
    try:
        settings = load_settings()
    except ValueError as e:
        logger.error(str(e))
        return 2

    if args.command == "extract":
        return run_extract(args)
    elif args.command == "reveal":
        return await run_reveal(args, settings)
    elif args.command == "query":
        return await run_query(args, settings)
    return 1


def cli_main(argv=None):
    """Synchronous wrapper for setuptools console_scripts entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.command == "reveal" and args.interval_ms is not None and args.interval_ms <= 0:
        parser.error("--interval-ms must be positive")

    # uvicorn owns its event loop, so it cannot run inside asyncio.run().
    if args.command == "serve":
        return run_serve(args)
    return asyncio.run(main(args))


if __name__ == "__main__":
    exit_code = cli_main()
    exit(exit_code)
