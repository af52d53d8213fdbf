"""Similarity primitives shared by song matching and recommendations.

These functions have no side effects and never fail on well-formed input.
"""

from collections.abc import Sequence

from rapidfuzz.distance import Levenshtein

from tunebridge.domain.entities import AudioFeatures, UserMusicProfile

# Per-dimension tolerance used to decide whether two songs share a character
AUDIO_TOLERANCE = 0.2

# Scored similarities at or below this value are dropped from ranked output
SCORED_SIMILARITY_FLOOR = 0.3

SCORED_DIMENSIONS = ("danceability", "energy", "valence", "tempo_bpm")


def string_similarity(a: str, b: str) -> float:
    """Normalized edit-distance similarity in [0, 1], case-insensitive.

    Computed as (max_len - levenshtein(a, b)) / max_len, with two empty
    strings considered identical.
    """
    a, b = a.lower(), b.lower()
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return (max_len - Levenshtein.distance(a, b)) / max_len


def within_tolerance(
    a: AudioFeatures | None,
    b: AudioFeatures | None,
    tolerance: float = AUDIO_TOLERANCE,
) -> bool:
    """Check whether two feature vectors describe a similar-sounding song.

    Passes iff danceability, energy and valence each differ by at most
    ``tolerance``. A missing vector on either side never matches.
    """
    if a is None or b is None:
        return False
    return (
        abs(a.danceability - b.danceability) <= tolerance
        and abs(a.energy - b.energy) <= tolerance
        and abs(a.valence - b.valence) <= tolerance
    )


def _tempo_delta(tempo: float, reference_tempo: float) -> float:
    if reference_tempo <= 0:
        return 0.0 if tempo == reference_tempo else 1.0
    return abs(tempo - reference_tempo) / reference_tempo


def _mean_similarity(deltas: Sequence[float]) -> float:
    score = 1 - sum(deltas) / len(deltas)
    return max(0.0, min(1.0, score))


def scored_similarity(
    candidate: AudioFeatures | None,
    reference: AudioFeatures | None,
    reference_tempo: float | None = None,
    dimensions: Sequence[str] = SCORED_DIMENSIONS,
) -> float | None:
    """Soft similarity between two feature vectors for ranking.

    score = 1 - mean(|delta| per dimension), where the tempo delta is
    normalised by ``reference_tempo`` (defaults to the reference's tempo).
    The result is clamped to [0, 1]. Returns None when either vector is
    missing so callers can leave the candidate out of the ranking.
    """
    if candidate is None or reference is None:
        return None
    if not dimensions:
        raise ValueError("At least one audio dimension is required")

    ref_tempo = reference.tempo_bpm if reference_tempo is None else reference_tempo
    deltas = []
    for dimension in dimensions:
        if dimension == "tempo_bpm":
            deltas.append(_tempo_delta(candidate.tempo_bpm, ref_tempo))
        else:
            deltas.append(abs(getattr(candidate, dimension) - getattr(reference, dimension)))
    return _mean_similarity(deltas)


def profile_similarity(
    features: AudioFeatures | None, profile: UserMusicProfile
) -> float | None:
    """Scored similarity of a song against a listener's preferred sound.

    Profiles only carry tempo, energy and valence, so the comparison uses
    those three dimensions.
    """
    if features is None:
        return None
    deltas = [
        abs(features.energy - profile.preferred_energy),
        abs(features.valence - profile.preferred_valence),
        _tempo_delta(features.tempo_bpm, profile.preferred_tempo),
    ]
    return _mean_similarity(deltas)
