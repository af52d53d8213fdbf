"""Mood lookup table and questionnaire-based mood analysis.

The table seeds mood-based recommendations. analyze_mood turns weighted
questionnaire answers into a primary mood with a confidence, so a listener
can be recommended for without naming a mood themselves.
"""

from enum import StrEnum, auto
from numbers import Real
from types import MappingProxyType

from attrs import define, field, validators

from tunebridge.domain.entities import Song


class Mood(StrEnum):
    HAPPY = auto()
    SAD = auto()
    ENERGETIC = auto()
    CALM = auto()
    ROMANTIC = auto()
    FOCUSED = auto()


@define(frozen=True, slots=True)
class MoodProfile:
    """Genres and audio ranges that characterise a mood."""

    genres: tuple[str, ...]
    tempo_range: tuple[float, float]
    energy_range: tuple[float, float]

    def fits(self, song: Song) -> bool:
        """Whether a song belongs to this mood by genre or by its sound."""
        if song.genre and song.genre.lower() in self.genres:
            return True
        features = song.audio_features
        if features is None:
            return False
        tempo_min, tempo_max = self.tempo_range
        energy_min, energy_max = self.energy_range
        return (
            tempo_min <= features.tempo_bpm <= tempo_max
            and energy_min <= features.energy <= energy_max
        )


MOOD_CONFIG: MappingProxyType[Mood, MoodProfile] = MappingProxyType({
    Mood.HAPPY: MoodProfile(
        genres=("pop", "funk", "disco", "reggae"),
        tempo_range=(120, 140),
        energy_range=(0.7, 1.0),
    ),
    Mood.SAD: MoodProfile(
        genres=("blues", "soul", "indie", "folk"),
        tempo_range=(60, 100),
        energy_range=(0.0, 0.4),
    ),
    Mood.ENERGETIC: MoodProfile(
        genres=("rock", "electronic", "hip-hop", "metal"),
        tempo_range=(130, 180),
        energy_range=(0.8, 1.0),
    ),
    Mood.CALM: MoodProfile(
        genres=("ambient", "classical", "jazz", "acoustic"),
        tempo_range=(60, 90),
        energy_range=(0.0, 0.3),
    ),
    Mood.ROMANTIC: MoodProfile(
        genres=("r&b", "soul", "pop", "jazz"),
        tempo_range=(70, 110),
        energy_range=(0.2, 0.6),
    ),
    Mood.FOCUSED: MoodProfile(
        genres=("ambient", "electronic", "classical", "instrumental"),
        tempo_range=(80, 120),
        energy_range=(0.1, 0.5),
    ),
})


def get_mood_profile(mood: str) -> MoodProfile:
    """Look up a mood, accepting any casing of its name.

    Raises:
        ValueError: Unknown mood
    """
    try:
        return MOOD_CONFIG[Mood(mood.lower())]
    except ValueError:
        raise ValueError(
            f"Unknown mood {mood!r}; expected one of {', '.join(Mood)}"
        ) from None


MAX_RECOMMENDED_GENRES = 5

MOOD_KEYWORDS: MappingProxyType[Mood, tuple[str, ...]] = MappingProxyType({
    Mood.HAPPY: ("happy", "joyful", "cheerful", "content", "excited", "positive", "optimistic"),
    Mood.SAD: ("sad", "melancholic", "depressed", "upset", "gloomy"),
    Mood.ENERGETIC: ("energetic", "excited", "restless", "active", "pumped", "dynamic"),
    Mood.CALM: ("calm", "relaxed", "peaceful", "serene", "tranquil"),
    Mood.ROMANTIC: ("romantic", "in love", "affectionate", "loving"),
    Mood.FOCUSED: ("focused", "concentrated", "attentive", "determined"),
})

# Genres a listener may name when asked about style
KNOWN_GENRES = ("rock", "pop", "jazz", "classical", "electronic", "hip-hop", "country", "blues")
GENRE_QUESTION_WORDS = ("genre", "style")


@define(frozen=True, slots=True)
class QuestionnaireResponse:
    """One answer to the mood questionnaire.

    Text answers are matched against mood keywords; numeric answers are read
    as a 1-10 scale. ``weight`` scales how much the answer counts.
    """

    question: str
    answer: str | float
    weight: float = field(default=1.0, validator=validators.ge(0))


@define(frozen=True, slots=True)
class MoodAnalysis:
    """Outcome of scoring a questionnaire."""

    primary_mood: Mood
    confidence: float
    scores: dict[Mood, float]
    secondary_moods: list[Mood]
    recommended_genres: list[str]


def _score_answer(response: QuestionnaireResponse, scores: dict[Mood, float]) -> None:
    weight = response.weight
    text = str(response.answer).lower()
    for mood, keywords in MOOD_KEYWORDS.items():
        if any(keyword in text for keyword in keywords):
            scores[mood] += weight

    answer = response.answer
    if isinstance(answer, bool) or not isinstance(answer, Real):
        return
    if answer >= 8:
        scores[Mood.HAPPY] += weight * 0.5
        scores[Mood.ENERGETIC] += weight * 0.3
    elif answer <= 3:
        scores[Mood.SAD] += weight * 0.5
        scores[Mood.CALM] += weight * 0.3
    elif answer >= 6:
        scores[Mood.HAPPY] += weight * 0.3
        scores[Mood.FOCUSED] += weight * 0.2
    else:
        scores[Mood.CALM] += weight * 0.3
        scores[Mood.FOCUSED] += weight * 0.2


def _recommended_genres(mood: Mood, responses: list[QuestionnaireResponse]) -> list[str]:
    genres = list(MOOD_CONFIG[mood].genres)
    for response in responses:
        question = response.question.lower()
        if not any(word in question for word in GENRE_QUESTION_WORDS):
            continue
        answer = str(response.answer).lower()
        genres.extend(
            genre for genre in KNOWN_GENRES if genre in answer and genre not in genres
        )
    return genres[:MAX_RECOMMENDED_GENRES]


def analyze_mood(responses: list[QuestionnaireResponse]) -> MoodAnalysis:
    """Score questionnaire answers and pick the listener's current mood.

    Each answer adds its weight to every mood whose keywords it mentions, and
    numeric answers shift weight along the happy/sad scale. The highest score
    wins, the earliest mood on ties, and happy when nothing scored at all.
    Confidence is the lead of the top score over the runner-up, relative to
    the top score.

    Raises:
        ValueError: No responses were given
    """
    if not responses:
        raise ValueError("Questionnaire responses are required")

    scores = dict.fromkeys(Mood, 0.0)
    for response in responses:
        _score_answer(response, scores)

    primary = Mood.HAPPY
    for mood, score in scores.items():
        if score > scores[primary]:
            primary = mood

    top, runner_up = sorted(scores.values(), reverse=True)[:2]
    confidence = min(1.0, (top - runner_up) / top) if top > 0 else 0.0

    secondary = sorted(
        (mood for mood, score in scores.items() if mood != primary and score > 0),
        key=lambda mood: scores[mood],
        reverse=True,
    )

    return MoodAnalysis(
        primary_mood=primary,
        confidence=confidence,
        scores=scores,
        secondary_moods=secondary,
        recommended_genres=_recommended_genres(primary, responses),
    )
