from __future__ import annotations

from pathlib import Path
from typing import Any

from adapters.catalog_loader import load_catalog
from core.config import PlacementConfig
from core.models import ChatMessage
from core.placement import (
    CommitmentStatus,
    PlacementPolicy,
    PlacementRequest,
    has_section_boundary,
    is_streaming_ready,
    plan_contextual_placements,
)
from core.registry import ShownAdRegistry
from core.selector import AdSelector

CATALOG_PATH = Path(__file__).resolve().parents[1] / "src" / "catalog.json"

DELL_QUESTION = "Should I buy a Dell or HP gaming laptop?"
NEUTRAL_QUESTION = "Hello there"
UNRELATED_REPLY = "Banana bread needs ripe bananas. " * 10


class SpySelector:
    """Counts calls while delegating to the real selector."""

    def __init__(self) -> None:
        self._selector = AdSelector(load_catalog(str(CATALOG_PATH)))
        self.calls: list[tuple[str, int]] = []

    def select(self, text: Any, **kwargs: Any):
        self.calls.append((text, kwargs.get("min_score", 10)))
        return self._selector.select(text, **kwargs)


class FailingSelector:
    def __init__(self) -> None:
        self.calls = 0

    def select(self, text: Any, **kwargs: Any):
        self.calls += 1
        raise RuntimeError("scorer exploded")


def _policy(selector, config: PlacementConfig | None = None) -> tuple[PlacementPolicy, ShownAdRegistry]:
    registry = ShownAdRegistry()
    return PlacementPolicy(selector, registry, config or PlacementConfig()), registry


def test_commitment_is_idempotent_across_growing_text() -> None:
    selector = SpySelector()
    policy, registry = _policy(selector, PlacementConfig(stream_min_chars=40))
    reply = "Gaming laptops:\n" + "Both brands ship solid machines this year. " * 8

    first = policy.place(PlacementRequest("conv", 10, user_text=DELL_QUESTION))
    assert first is None
    assert policy.state_for(10).status is CommitmentStatus.RESERVED
    assert registry.get_shown("conv") == {2}

    second = policy.place(
        PlacementRequest("conv", 10, user_text=DELL_QUESTION, reply_text=reply[:50])
    )
    assert second is not None
    assert second.id == 2
    calls_after_commit = len(selector.calls)

    third = policy.place(
        PlacementRequest("conv", 10, user_text=DELL_QUESTION, reply_text=reply, complete=True)
    )
    assert third == second
    assert len(selector.calls) == calls_after_commit
    assert policy.committed_ad(10) == second


def test_input_trigger_uses_the_input_threshold_once() -> None:
    selector = SpySelector()
    policy, _ = _policy(selector)

    policy.place(PlacementRequest("conv", 1, user_text=NEUTRAL_QUESTION))
    policy.place(PlacementRequest("conv", 1, user_text=NEUTRAL_QUESTION, reply_text="Hi"))

    assert selector.calls == [(NEUTRAL_QUESTION, 15)]
    assert policy.state_for(1).status is CommitmentStatus.UNEVALUATED


def test_streaming_trigger_matches_user_text_and_reply_opening() -> None:
    selector = SpySelector()
    policy, registry = _policy(selector)
    reply = "Coffee basics:\n" + "Fresh roasted coffee beans make the biggest difference. " * 6

    ad = policy.place(
        PlacementRequest("conv", 7, user_text=NEUTRAL_QUESTION, reply_text=reply)
    )

    assert ad is not None
    assert ad.id == 5
    assert registry.get_shown("conv") == {5}
    assert registry.get_recent()[0] == 5
    streaming_text, threshold = selector.calls[-1]
    assert threshold == 15
    assert streaming_text.startswith(NEUTRAL_QUESTION)
    assert len(streaming_text) <= len(NEUTRAL_QUESTION) + 1 + 300


def test_streaming_trigger_waits_for_enough_reply() -> None:
    selector = SpySelector()
    policy, _ = _policy(selector)

    ad = policy.place(
        PlacementRequest("conv", 7, user_text=NEUTRAL_QUESTION, reply_text="Coffee is great")
    )

    assert ad is None
    assert len(selector.calls) == 1


def test_streaming_miss_is_not_retried_and_falls_back_to_completion() -> None:
    selector = SpySelector()
    policy, _ = _policy(selector)

    for cut in (300, 320, len(UNRELATED_REPLY)):
        policy.place(
            PlacementRequest("conv", 3, user_text=NEUTRAL_QUESTION, reply_text=UNRELATED_REPLY[:cut])
        )
    assert [threshold for _, threshold in selector.calls] == [15, 15]

    ad = policy.place(
        PlacementRequest(
            "conv", 3, user_text=NEUTRAL_QUESTION, reply_text=UNRELATED_REPLY, complete=True
        )
    )
    assert ad is None
    assert [threshold for _, threshold in selector.calls] == [15, 15, 10]
    state = policy.state_for(3)
    assert state.status is CommitmentStatus.COMMITTED
    assert state.ad is None


def test_completion_fallback_uses_full_reply() -> None:
    selector = SpySelector()
    policy, registry = _policy(selector)
    reply = "I recommend a coffee subscription."

    ad = policy.place(
        PlacementRequest("conv", 4, user_text=NEUTRAL_QUESTION, reply_text=reply, complete=True)
    )

    assert ad is not None
    assert ad.id == 5
    assert registry.get_shown("conv") == {5}
    assert selector.calls[-1] == (f"{NEUTRAL_QUESTION} {reply}", 10)


def test_no_ad_commitment_is_final() -> None:
    selector = SpySelector()
    policy, _ = _policy(selector)
    done = PlacementRequest(
        "conv", 8, user_text=NEUTRAL_QUESTION, reply_text="Banana bread.", complete=True
    )

    assert policy.place(done) is None
    calls = len(selector.calls)
    later = PlacementRequest(
        "conv", 8, user_text=DELL_QUESTION, reply_text="Dell gaming laptop", complete=True
    )
    assert policy.place(later) is None
    assert len(selector.calls) == calls


def test_reserved_ad_is_committed_on_completion_without_requery() -> None:
    selector = SpySelector()
    policy, _ = _policy(selector)

    policy.place(PlacementRequest("conv", 2, user_text=DELL_QUESTION))
    ad = policy.place(
        PlacementRequest("conv", 2, user_text=DELL_QUESTION, reply_text="Sure.", complete=True)
    )

    assert ad is not None and ad.id == 2
    assert len(selector.calls) == 1


def test_shown_ads_are_excluded_for_later_messages() -> None:
    selector = SpySelector()
    policy, _ = _policy(selector)

    first = policy.place(
        PlacementRequest("conv", 1, user_text=DELL_QUESTION, reply_text="Sure.", complete=True)
    )
    second = policy.place(
        PlacementRequest("conv", 2, user_text=DELL_QUESTION, reply_text="Sure.", complete=True)
    )

    assert first is not None and first.id == 2
    assert second is None or second.id != 2


def test_selector_failure_means_no_ad_and_never_raises() -> None:
    selector = FailingSelector()
    policy, registry = _policy(selector)

    assert policy.place(PlacementRequest("conv", 1, user_text=DELL_QUESTION)) is None
    ad = policy.place(
        PlacementRequest("conv", 1, user_text=DELL_QUESTION, reply_text="Sure.", complete=True)
    )

    assert ad is None
    assert policy.state_for(1).is_committed
    assert registry.get_recent() == []
    assert selector.calls == 2


def test_forget_and_reset_drop_commitments() -> None:
    selector = SpySelector()
    policy, _ = _policy(selector)
    policy.place(PlacementRequest("conv", 1, user_text=DELL_QUESTION, complete=True))
    policy.place(PlacementRequest("conv", 2, user_text=NEUTRAL_QUESTION, complete=True))

    policy.forget([1])
    assert policy.state_for(1).status is CommitmentStatus.UNEVALUATED
    assert policy.state_for(2).is_committed

    policy.reset()
    assert policy.state_for(2).status is CommitmentStatus.UNEVALUATED


def test_section_boundaries() -> None:
    assert has_section_boundary("Intro text\nKey Features:\nmore")
    assert has_section_boundary("## Options\nDell")
    assert has_section_boundary("# Title")
    assert has_section_boundary("OVERVIEW\nbody")
    assert not has_section_boundary("See https://example.com/path:")
    assert not has_section_boundary("Just one paragraph of text without headers.")
    assert not has_section_boundary("This line is far too long to be considered a section header:")


def test_streaming_readiness() -> None:
    config = PlacementConfig(stream_min_chars=20, early_context_chars=100)
    assert not is_streaming_ready("Options:\nshort", config)
    assert is_streaming_ready("Options:\n" + "x" * 20, config)
    assert not is_streaming_ready("y" * 99, config)
    assert is_streaming_ready("y" * 100, config)


def _message(index: int, role: str, content: str) -> ChatMessage:
    return ChatMessage(role=role, content=content, id=index)


def test_contextual_placements_respect_spacing_and_structure() -> None:
    selector = SpySelector()
    messages = [
        _message(0, "user", "Hi"),
        _message(1, "assistant", "Hello! How can I help?"),
        _message(2, "user", "Any coffee tips?"),
        _message(3, "assistant", "Coffee tips:\n- Buy fresh roasted beans"),
        _message(4, "user", "Which laptop for gaming?"),
        _message(5, "assistant", "Options:\n- A Dell gaming laptop with RTX graphics"),
    ]

    placements = plan_contextual_placements(messages, selector)

    assert [placement.message_index for placement in placements] == [5]
    assert placements[0].message_id == 5
    assert placements[0].match.entry.id == 2
    assert all(threshold == 8 for _, threshold in selector.calls)


def test_contextual_placements_are_capped_and_sorted() -> None:
    selector = SpySelector()
    config = PlacementConfig(min_messages_between_ads=0, max_ads_per_conversation=1)
    messages = [
        _message(0, "user", "Coffee?"),
        _message(1, "assistant", "Coffee: fresh roasted beans"),
        _message(2, "user", "Gaming laptops?"),
        _message(3, "assistant", "Options:\n- Dell gaming laptop, RTX graphics, Dell performance"),
    ]

    placements = plan_contextual_placements(messages, selector, config=config)

    assert len(placements) == 1
    assert plan_contextual_placements(messages[:1], selector, config=config) == []
