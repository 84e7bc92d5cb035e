"""Merge and rank candidate lists from the rule-based and AI sources.

Both merges are pure (inputs are never mutated) and idempotent:
``merge(a, merge(a, b)) == merge(a, b)`` and ``merge(a, a)`` keeps every
id and score of ``a``.  Results are sorted by score, highest first, with
ties kept in order of first appearance.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Sequence

from wellness.models import PeerCandidate, RecommendationItem

REASON_SEPARATOR = "; "


def _join_reasons(first: str | None, second: str | None) -> str:
    """Concatenate two reason strings, dropping parts already present."""
    parts: list[str] = []
    for reason in (first, second):
        for part in (reason or "").split(REASON_SEPARATOR):
            part = part.strip()
            if part and part not in parts:
                parts.append(part)
    return REASON_SEPARATOR.join(parts)


def _union(first: Iterable[str], second: Iterable[str]) -> list[str]:
    merged = list(first)
    merged.extend(x for x in second if x not in merged)
    return merged


def _absorb_item(
    merged: list[RecommendationItem],
    index: dict[tuple, int],
    item: RecommendationItem,
    from_secondary: bool,
) -> None:
    position = index.get(item.key)
    if position is None:
        index[item.key] = len(merged)
        merged.append(
            dataclasses.replace(
                item,
                reason=_join_reasons(item.reason, None),
                ai_enhanced=item.ai_enhanced or from_secondary,
                boosts=list(item.boosts),
            )
        )
        return

    current = merged[position]
    score = max(current.score, item.score)
    reason = _join_reasons(current.reason, item.reason)
    boosts = _union(current.boosts, item.boosts)
    changed = score != current.score or reason != current.reason
    merged[position] = dataclasses.replace(
        current,
        score=score,
        reason=reason,
        boosts=boosts,
        ai_enhanced=current.ai_enhanced or item.ai_enhanced or changed,
    )


def merge_content_lists(
    a: Sequence[RecommendationItem], b: Sequence[RecommendationItem]
) -> list[RecommendationItem]:
    """Merge recommendation lists keyed by ``(type, id)``.

    For every item of *b* matching an item already merged, the larger
    score is kept and distinct reason strings are joined with ``"; "``.
    Items of *b* with no match are appended.  Items touched by *b* are
    marked ``ai_enhanced``.

    Args:
        a: The primary (rule-based) list.
        b: The secondary (AI-augmented) list.

    Returns:
        A new list with each key exactly once, sorted by score descending.
    """
    merged: list[RecommendationItem] = []
    index: dict[tuple, int] = {}
    for item in a:
        _absorb_item(merged, index, item, from_secondary=False)
    for item in b:
        _absorb_item(merged, index, item, from_secondary=True)
    return sorted(merged, key=lambda i: i.score, reverse=True)


def _absorb_peer(
    merged: list[PeerCandidate],
    index: dict[str, int],
    peer: PeerCandidate,
    from_secondary: bool,
) -> None:
    position = index.get(peer.id)
    if position is None:
        index[peer.id] = len(merged)
        merged.append(
            dataclasses.replace(
                peer,
                ai_enhanced=peer.ai_enhanced or from_secondary,
                shared_interests=_union([], peer.shared_interests),
            )
        )
        return

    current = merged[position]
    score = max(current.compatibility_score, peer.compatibility_score)
    interests = _union(current.shared_interests, peer.shared_interests)
    changed = score != current.compatibility_score or interests != current.shared_interests
    merged[position] = dataclasses.replace(
        current,
        compatibility_score=score,
        shared_interests=interests,
        ai_enhanced=current.ai_enhanced or peer.ai_enhanced or changed,
    )


def merge_peer_lists(
    a: Sequence[PeerCandidate], b: Sequence[PeerCandidate]
) -> list[PeerCandidate]:
    """Merge peer lists keyed by peer id, keeping the larger compatibility score.

    Shared interests are unioned.  Sorted by ``compatibility_score``
    descending.
    """
    merged: list[PeerCandidate] = []
    index: dict[str, int] = {}
    for peer in a:
        _absorb_peer(merged, index, peer, from_secondary=False)
    for peer in b:
        _absorb_peer(merged, index, peer, from_secondary=True)
    return sorted(merged, key=lambda p: p.compatibility_score, reverse=True)
