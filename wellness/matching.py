"""Peer matching maths: profile compatibility and behavioral similarity."""

from __future__ import annotations

import re

import numpy as np

from wellness.models import ActivityLevel, InteractionType, PeerProfile

# Compatibility weights (sum to 1.0)
_WEIGHT_INTERESTS = 0.4
_WEIGHT_EXPERIENCES = 0.35
_WEIGHT_AGE = 0.15
_WEIGHT_STYLE = 0.1

_NEUTRAL_SIMILARITY = 0.5

_AGE_RANGE_RE = re.compile(r"^\s*(\d+)\s*(?:-\s*(\d+)|\+)\s*$")
_OPEN_AGE_UPPER = 100

_LEVEL_ORDER = {ActivityLevel.LOW: 0, ActivityLevel.MEDIUM: 1, ActivityLevel.HIGH: 2}


def get_shared_interests(user: PeerProfile, peer: PeerProfile) -> list[str]:
    return [i for i in user.interests if i in peer.interests]


def get_shared_experiences(user: PeerProfile, peer: PeerProfile) -> list[str]:
    return [e for e in user.experiences if e in peer.experiences]


def parse_age_range(age_range: str | None) -> tuple[int, int] | None:
    """Parse ``"26-35"`` or ``"56+"`` into inclusive bounds.

    Returns:
        ``(low, high)``, or ``None`` if *age_range* is missing or malformed.
    """
    if not age_range:
        return None
    match = _AGE_RANGE_RE.match(age_range)
    if not match:
        return None
    low = int(match.group(1))
    high = int(match.group(2)) if match.group(2) else _OPEN_AGE_UPPER
    return low, high


def age_ranges_compatible(range1: str | None, range2: str | None) -> bool:
    """Return ``True`` when the two age ranges overlap."""
    bounds1 = parse_age_range(range1)
    bounds2 = parse_age_range(range2)
    if bounds1 is None or bounds2 is None:
        return False
    return not (bounds1[1] < bounds2[0] or bounds2[1] < bounds1[0])


def calculate_compatibility(user: PeerProfile, peer: PeerProfile) -> float:
    """Weighted profile compatibility between two users, in ``[0, 1]``.

    ==========================  ======
    Factor                      Weight
    ==========================  ======
    Shared interests (ratio)    0.40
    Shared experiences (ratio)  0.35
    Overlapping age range       0.15
    Same communication style    0.10
    ==========================  ======

    Ratios are ``shared / max(len(user_list), len(peer_list))``.
    """
    score = 0.0

    shared = get_shared_interests(user, peer)
    if shared:
        score += len(shared) / max(len(user.interests), len(peer.interests)) * _WEIGHT_INTERESTS

    shared = get_shared_experiences(user, peer)
    if shared:
        score += len(shared) / max(len(user.experiences), len(peer.experiences)) * _WEIGHT_EXPERIENCES

    if age_ranges_compatible(user.age_range, peer.age_range):
        score += _WEIGHT_AGE

    if user.communication_style and user.communication_style == peer.communication_style:
        score += _WEIGHT_STYLE

    return min(1.0, score)


def behavioral_similarity(
    user_activity: dict[str, float], peer_activity: dict[str, float]
) -> float:
    """Cosine similarity between two interaction-type count vectors.

    Returns 0.5 (neutral) when either side has no recorded activity.
    """
    features = sorted(set(user_activity) | set(peer_activity))
    if not features:
        return _NEUTRAL_SIMILARITY

    user_vec = np.array([user_activity.get(f, 0.0) for f in features], dtype=np.float64)
    peer_vec = np.array([peer_activity.get(f, 0.0) for f in features], dtype=np.float64)
    user_norm = np.linalg.norm(user_vec)
    peer_norm = np.linalg.norm(peer_vec)
    if user_norm == 0.0 or peer_norm == 0.0:
        return _NEUTRAL_SIMILARITY

    similarity = float(user_vec @ peer_vec / (user_norm * peer_norm))
    return max(0.0, min(1.0, similarity))


def suggested_interaction_type(
    profile_similarity: float, behavioral_sim: float
) -> InteractionType:
    """Map the mean of the two similarity scores onto an interaction type."""
    combined = (profile_similarity + behavioral_sim) / 2
    if combined > 0.8:
        return InteractionType.COLLABORATIVE_SUPPORT
    if combined > 0.6:
        return InteractionType.PEER_MENTORING
    if combined > 0.4:
        return InteractionType.ACTIVITY_PARTNERSHIP
    return InteractionType.GENERAL_CONNECTION


def categorize_activity_level(average_session_minutes: float, session_count: int) -> ActivityLevel:
    """Bucket a user's engagement into low / medium / high.

    High needs at least 5 sessions averaging 30+ minutes; medium at least
    2 sessions averaging 15+ minutes.
    """
    if session_count >= 5 and average_session_minutes >= 30:
        return ActivityLevel.HIGH
    if session_count >= 2 and average_session_minutes >= 15:
        return ActivityLevel.MEDIUM
    return ActivityLevel.LOW


def activity_levels_compatible(level1: ActivityLevel, level2: ActivityLevel) -> bool:
    """Levels at most one step apart are compatible; unknown matches anything."""
    if level1 not in _LEVEL_ORDER or level2 not in _LEVEL_ORDER:
        return True
    return abs(_LEVEL_ORDER[level1] - _LEVEL_ORDER[level2]) <= 1
