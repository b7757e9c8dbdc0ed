import asyncio

from folio.reveal.streaming import astream_reveal


async def _collect(stream):
    return [event async for event in stream]


def test_stream_emits_growing_prefixes_then_done():
    events = asyncio.run(_collect(astream_reveal("abc", interval_ms=1)))

    reveals = [e["data"] for e in events if e["type"] == "reveal"]
    assert reveals == ["a", "ab", "abc", "abc {REDACTED}"]
    assert events[-1] == {"type": "done"}


def test_stream_clips_to_redact_length():
    events = asyncio.run(_collect(astream_reveal("abcdef", interval_ms=1, redact_length=2)))

    assert events[-2] == {"type": "reveal", "data": "ab {REDACTED}"}


def test_stream_of_empty_text():
    events = asyncio.run(_collect(astream_reveal("", interval_ms=1)))

    assert events == [{"type": "reveal", "data": ""}, {"type": "done"}]


def test_closing_stream_early_stops_reveal():
    async def run():
        stream = astream_reveal("a fairly long fragment", interval_ms=1)
        first = await stream.__anext__()
        await stream.aclose()
        return first

    assert asyncio.run(run()) == {"type": "reveal", "data": "a"}
