import pytest

from folio.reveal.engine import (
    REDACTION_MARKER,
    ChannelState,
    RevealEngine,
    word_units,
)


def test_reveal_timeline_for_short_source(clock):
    engine = RevealEngine(clock)
    channel = engine.start("hi", 10)

    clock.advance(5)
    assert channel.revealed == "h"

    clock.advance(20)
    assert channel.revealed == "hi {REDACTED}"
    assert channel.done
    assert clock.pending == 0


def test_reveal_is_monotonic(clock):
    source = "hello, wide world"
    engine = RevealEngine(clock)
    channel = engine.start(source, 3)

    samples = [channel.revealed]
    for _ in range(3 * len(source)):
        clock.advance(1)
        samples.append(channel.revealed)

    for earlier, later in zip(samples, samples[1:]):
        assert later.startswith(earlier)
    assert source.startswith(samples[0])


def test_reveal_completes_after_n_intervals(clock):
    engine = RevealEngine(clock)
    channel = engine.start("abcd", 7)

    clock.advance(21)
    assert channel.revealed == "abcd"
    assert not channel.done

    clock.advance(7)
    assert channel.revealed == "abcd" + REDACTION_MARKER
    assert channel.done


def test_marker_is_appended_once(clock):
    engine = RevealEngine(clock)
    channel = engine.start("ab", 1)

    clock.advance(100)

    assert channel.revealed == "ab {REDACTED}"
    assert channel.revealed.count("{REDACTED}") == 1


def test_restart_supersedes_in_flight_reveal(clock):
    engine = RevealEngine(clock)
    old = engine.start("old text", 10)
    clock.advance(25)
    assert old.revealed == "old"

    new = engine.start("new", 10)
    assert engine.current is new
    assert old.state is ChannelState.STOPPED
    assert new.revealed == "n"

    clock.advance(100)
    assert old.revealed == "old"
    assert engine.display == "new {REDACTED}"
    assert clock.pending == 0


def test_restart_never_interleaves_sources(clock):
    engine = RevealEngine(clock)
    engine.start("aaaaaaaa", 2)
    clock.advance(5)
    engine.start("bbbb", 3)

    seen = []
    for _ in range(30):
        clock.advance(1)
        seen.append(engine.display)

    for value in seen:
        assert "a" not in value
    assert seen[-1] == "bbbb {REDACTED}"


def test_stop_keeps_prefix(clock):
    engine = RevealEngine(clock)
    channel = engine.start("abcdef", 10)
    clock.advance(15)

    engine.stop(channel)
    clock.advance(100)

    assert channel.revealed == "ab"
    assert channel.state is ChannelState.STOPPED
    assert not channel.done
    assert clock.pending == 0


def test_stop_without_channel_is_noop(clock):
    RevealEngine(clock).stop()


def test_empty_source_completes_without_marker(clock):
    engine = RevealEngine(clock)
    channel = engine.start("", 10)

    assert channel.done
    assert channel.revealed == ""
    assert clock.pending == 0


def test_non_positive_interval_is_rejected(clock):
    engine = RevealEngine(clock)
    with pytest.raises(ValueError):
        engine.start("abc", 0)
    with pytest.raises(ValueError):
        engine.start("abc", -5)


def test_finish_fast_forwards(clock):
    engine = RevealEngine(clock)
    channel = engine.start("a long fragment", 10)

    engine.finish()

    assert channel.done
    assert channel.revealed == "a long fragment {REDACTED}"
    assert clock.pending == 0


def test_word_units(clock):
    engine = RevealEngine(clock, split_units=word_units)
    channel = engine.start("ab cd", 10)

    values = [channel.revealed]
    for _ in range(3):
        clock.advance(10)
        values.append(channel.revealed)

    assert values == ["ab", "ab ", "ab cd", "ab cd {REDACTED}"]


def test_marker_can_be_disabled(clock):
    engine = RevealEngine(clock, marker=None)
    channel = engine.start("xyz", 1)

    clock.advance(10)

    assert channel.done
    assert channel.revealed == "xyz"


def test_on_update_sees_every_change(clock):
    seen = []
    engine = RevealEngine(clock)
    engine.start("abc", 5, on_update=lambda ch: seen.append(ch.revealed))

    clock.advance(50)

    assert seen == ["a", "ab", "abc", "abc {REDACTED}"]


def test_unit_counters(clock):
    engine = RevealEngine(clock)
    channel = engine.start("abcd", 10)
    clock.advance(10)

    assert channel.total_units == 4
    assert channel.revealed_units == 2
