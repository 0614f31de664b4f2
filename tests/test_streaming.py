from __future__ import annotations

import random

from core.streaming import chunk_delay, stream_chunks


def test_partials_grow_to_full_text() -> None:
    text = "Hello, world.\n\nSecond paragraph here!"
    partials = [partial for partial, _ in stream_chunks(text, random.Random(7))]

    assert partials[-1] == text
    steps = [len(b) - len(a) for a, b in zip([""] + partials, partials)]
    assert all(1 <= step <= 3 for step in steps)
    assert all(text.startswith(partial) for partial in partials)


def test_empty_text_yields_nothing() -> None:
    assert list(stream_chunks("")) == []


def test_delays_follow_punctuation() -> None:
    rng = random.Random(1)

    assert chunk_delay("a\n\n", rng) == 0.2
    assert chunk_delay("a\n", rng) == 0.12
    assert chunk_delay("ok.", rng) == 0.18
    assert chunk_delay("a,", rng) == 0.1
    assert chunk_delay("a b", rng) == 0.06
    assert 0.025 <= chunk_delay("ab", rng) <= 0.055
