"""Ad placement policy for streamed assistant replies (core domain).

A reply arrives as a growing partial string, so the policy may be asked about
the same message many times. Each message moves through an explicit state
map, and the first commitment is final:

    UNEVALUATED -> RESERVED(ad) -> COMMITTED(ad)
    UNEVALUATED -> COMMITTED(ad | None)

Triggers, in order:
1) input: the user's message alone reaches the input threshold; the ad is
   reserved (and marked shown) before the reply exists.
2) streaming: enough of the reply has arrived; a reservation is committed,
   otherwise the user text plus the opening of the reply is matched once.
3) completion: the full reply is known and nothing is committed yet; the
   reservation or a final match is committed, or an explicit "no ad".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Collection, Hashable, Iterable, List, Optional, Sequence

from core.config import PlacementConfig
from core.models import AdMatch, CatalogEntry, ChatMessage
from core.ports import SelectorPort
from core.registry import ShownAdRegistry

LOGGER = logging.getLogger(__name__)

_STRUCTURE_MARKERS = (":", "\n\n", "##", "- ", "1.")


class CommitmentStatus(str, Enum):
    UNEVALUATED = "unevaluated"
    RESERVED = "reserved"
    COMMITTED = "committed"


@dataclass(frozen=True)
class CommitmentState:
    """Placement state of one assistant message."""

    status: CommitmentStatus = CommitmentStatus.UNEVALUATED
    ad: Optional[CatalogEntry] = None
    input_checked: bool = False
    streaming_checked: bool = False

    @property
    def is_committed(self) -> bool:
        return self.status is CommitmentStatus.COMMITTED


@dataclass(frozen=True)
class PlacementRequest:
    """One placement query; ``reply_text`` grows across streaming callbacks."""

    conversation_id: Hashable
    message_id: Hashable
    user_text: str = ""
    reply_text: str = ""
    complete: bool = False


@dataclass(frozen=True)
class ContextualPlacement:
    """An ad chosen for an earlier assistant message by contextual analysis."""

    message_index: int
    message_id: int
    match: AdMatch


def _is_section_header(line: str) -> bool:
    if line.endswith(":") and len(line) < 50 and "http" not in line:
        return True
    if line.startswith("## ") or line.startswith("# "):
        return True
    letters = line.replace(" ", "")
    return len(line) < 40 and letters.isalpha() and letters.isascii() and line == line.upper()


def has_section_boundary(text: str) -> bool:
    """Return True when ``text`` contains at least one structural header line."""

    return any(_is_section_header(line.rstrip()) for line in text.split("\n") if line.strip())


def is_streaming_ready(reply_text: str, config: PlacementConfig) -> bool:
    """Decide whether a partial reply carries enough context to match against."""

    if len(reply_text) >= config.early_context_chars:
        return True
    return len(reply_text) >= config.stream_min_chars and has_section_boundary(reply_text)


class PlacementPolicy:
    """Commits at most one ad per assistant message, first commitment wins."""

    def __init__(
        self,
        selector: SelectorPort,
        registry: ShownAdRegistry,
        config: Optional[PlacementConfig] = None,
    ) -> None:
        self._selector = selector
        self._registry = registry
        self._config = config or PlacementConfig()
        self._states: dict[Hashable, CommitmentState] = {}

    def state_for(self, message_id: Hashable) -> CommitmentState:
        return self._states.get(message_id, CommitmentState())

    def committed_ad(self, message_id: Hashable) -> Optional[CatalogEntry]:
        state = self.state_for(message_id)
        return state.ad if state.is_committed else None

    def forget(self, message_ids: Iterable[Hashable]) -> None:
        for message_id in message_ids:
            self._states.pop(message_id, None)

    def reset(self) -> None:
        self._states.clear()

    def place(self, request: PlacementRequest) -> Optional[CatalogEntry]:
        """Advance the message's placement state and return its committed ad.

        Returns None while the message is undecided or committed to "no ad".
        Never raises: selector failures count as "no ad" for that trigger.
        """

        state = self.state_for(request.message_id)
        if state.is_committed:
            return state.ad

        if not state.input_checked:
            state = self._input_trigger(request, state)

        reply = request.reply_text or ""
        if request.complete:
            state = self._completion_trigger(request, state)
        elif reply and is_streaming_ready(reply, self._config):
            state = self._streaming_trigger(request, state)

        self._states[request.message_id] = state
        return state.ad if state.is_committed else None

    def _input_trigger(self, request: PlacementRequest, state: CommitmentState) -> CommitmentState:
        match = self._run_selector(
            request.conversation_id, request.user_text, self._config.input_min_score
        )
        if match is None:
            return replace(state, input_checked=True)
        self._registry.mark_shown(request.conversation_id, match.entry.id)
        LOGGER.info("Reserved input ad %s for message %s", match.entry.id, request.message_id)
        return replace(
            state,
            status=CommitmentStatus.RESERVED,
            ad=match.entry,
            input_checked=True,
        )

    def _streaming_trigger(
        self, request: PlacementRequest, state: CommitmentState
    ) -> CommitmentState:
        if state.status is CommitmentStatus.RESERVED:
            return self._commit(request, state.ad, "streaming (reserved)")
        if state.streaming_checked:
            return state

        context = f"{request.user_text} {request.reply_text[: self._config.early_context_chars]}"
        match = self._run_selector(
            request.conversation_id, context.strip(), self._config.streaming_min_score
        )
        if match is None:
            # Leave the message open for the completion fallback.
            return replace(state, streaming_checked=True)
        self._registry.mark_shown(request.conversation_id, match.entry.id)
        return self._commit(request, match.entry, "streaming")

    def _completion_trigger(
        self, request: PlacementRequest, state: CommitmentState
    ) -> CommitmentState:
        if state.status is CommitmentStatus.RESERVED:
            return self._commit(request, state.ad, "completion (reserved)")

        context = f"{request.user_text} {request.reply_text}".strip()
        match = self._run_selector(
            request.conversation_id, context, self._config.completion_min_score
        )
        if match is None:
            return self._commit(request, None, "completion")
        self._registry.mark_shown(request.conversation_id, match.entry.id)
        return self._commit(request, match.entry, "completion")

    def _commit(
        self,
        request: PlacementRequest,
        ad: Optional[CatalogEntry],
        trigger: str,
    ) -> CommitmentState:
        if ad is None:
            LOGGER.info("No ad for message %s (%s)", request.message_id, trigger)
        else:
            LOGGER.info("Committed ad %s for message %s (%s)", ad.id, request.message_id, trigger)
        return CommitmentState(
            status=CommitmentStatus.COMMITTED,
            ad=ad,
            input_checked=True,
            streaming_checked=True,
        )

    def _run_selector(
        self, conversation_id: Hashable, text: str, min_score: int
    ) -> Optional[AdMatch]:
        if not text:
            return None
        try:
            matches = self._selector.select(
                text,
                max_results=1,
                min_score=min_score,
                exclude_ids=self._registry.get_shown(conversation_id),
                recent_ids=self._registry.get_recent(),
            )
        except Exception:
            LOGGER.exception("Ad selection failed; continuing without an ad")
            return None
        return matches[0] if matches else None


def _has_structured_content(content: str) -> bool:
    return any(marker in content for marker in _STRUCTURE_MARKERS)


def plan_contextual_placements(
    messages: Sequence[ChatMessage],
    selector: SelectorPort,
    *,
    recent_ids: Collection[int] = (),
    config: Optional[PlacementConfig] = None,
) -> List[ContextualPlacement]:
    """Pick reinforcement ads for structured assistant replies in a transcript.

    Placements are spaced by ``min_messages_between_ads`` and each uses the
    surrounding window of messages as context. The strongest placements are
    kept, up to ``max_ads_per_conversation``.
    """

    config = config or PlacementConfig()
    if len(messages) < 2:
        return []

    placements: List[ContextualPlacement] = []
    last_index = -1
    for index, message in enumerate(messages):
        if message.role != "assistant":
            continue
        if index <= last_index + config.min_messages_between_ads:
            continue
        if not _has_structured_content(message.content):
            continue

        window = messages[max(0, index - config.contextual_window + 1) : index + 1]
        context = " ".join(item.content for item in window)
        try:
            matches = selector.select(
                context,
                max_results=1,
                min_score=config.contextual_min_score,
                recent_ids=recent_ids,
            )
        except Exception:
            LOGGER.exception("Contextual ad selection failed for message %s", message.id)
            continue
        if not matches:
            continue
        placements.append(
            ContextualPlacement(message_index=index, message_id=message.id, match=matches[0])
        )
        last_index = index

    placements.sort(key=lambda placement: placement.match.score, reverse=True)
    return placements[: config.max_ads_per_conversation]
