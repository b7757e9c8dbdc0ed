from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncIterator, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from loguru import logger
from pydantic import BaseModel, Field

from folio.config import load_settings
from folio.reveal.streaming import astream_reveal
from folio.symdef.definition_extractor import DefinitionExtractor
from folio.symdef.models import DefinitionSource


class ExtractRequest(BaseModel):
    sources: List[DefinitionSource] = Field(
        default_factory=list, description="Definition sources, as in a record's lexDefs"
    )
    document: str = Field("", description="Document text to mine")


class RevealRequest(BaseModel):
    text: str = Field(..., description="Fragment to reveal")
    intervalMs: Optional[float] = Field(
        None, description="Milliseconds per character; defaults to FOLIO_UNIT_INTERVAL_MS"
    )


def _sse_data(payload: dict[str, Any]) -> bytes:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n".encode("utf-8")


settings = load_settings()
extractor = DefinitionExtractor()

app = FastAPI(title="Folio Backend", version="0.1.0")

# ---------------------------------------------------------------------------
# CORS
#
# FOLIO_CORS_ALLOW_ORIGINS="https://app.example.com,https://staging.example.com"
# Unset: any localhost origin is allowed.
# ---------------------------------------------------------------------------


def _cors_allow_origins() -> list[str] | None:
    raw = (settings.cors_allow_origins or "").strip()
    if not raw:
        return None
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or None


cors_allow_origins = _cors_allow_origins()

if cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[],
        allow_origin_regex=r"https?://(localhost|127\.0\.0\.1):\d+",
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/extract")
async def extract(req: ExtractRequest) -> dict[str, Any]:
    definitions = extractor.extract(req.sources, req.document)
    return {"definitions": [d.to_dict() for d in definitions]}


@app.post("/reveal")
async def reveal(req: RevealRequest):
    interval_ms = req.intervalMs if req.intervalMs is not None else settings.unit_interval_ms
    if interval_ms <= 0:
        raise HTTPException(status_code=400, detail="intervalMs must be positive")

    async def event_stream() -> AsyncIterator[bytes]:
        queue: asyncio.Queue[bytes] = asyncio.Queue()

        async def produce() -> None:
            async for ev in astream_reveal(
                req.text,
                interval_ms=interval_ms,
                redact_length=settings.redact_length,
            ):
                queue.put_nowait(_sse_data(ev))

        task = asyncio.create_task(produce())
        try:
            while True:
                if task.done() and queue.empty():
                    break
                try:
                    chunk = await asyncio.wait_for(queue.get(), timeout=0.25)
                    yield chunk
                except asyncio.TimeoutError:
                    yield b": keep-alive\n\n"
        finally:
            if not task.done():
                logger.info("Reveal client disconnected; cancelling stream.")
                task.cancel()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )
