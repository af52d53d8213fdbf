"""Tests for recommendation scoring, mood table and profile derivation."""

from types import MappingProxyType

import pytest

from tests.fixtures.models import make_features, make_song
from tunebridge.config.settings import RecommendationConfig
from tunebridge.domain.entities import ListeningHistory, Playlist, UserMusicProfile
from tunebridge.domain.recommendations import (
    MOOD_CONFIG,
    Mood,
    QuestionnaireResponse,
    RecommendationScorer,
    analyze_mood,
    build_music_profile,
    get_mood_profile,
)
from tunebridge.domain.recommendations.scoring import (
    ARTIST_REASON,
    AUDIO_REASON,
    GENRE_REASON,
    MOOD_REASON,
    NEUTRAL_REASON,
)


@pytest.fixture
def profile():
    return UserMusicProfile(
        user_id="user-1",
        favorite_genres=["Rock", "jazz"],
        favorite_artists=["Radiohead"],
        preferred_tempo=120,
        preferred_energy=0.6,
        preferred_valence=0.4,
        listening_history=ListeningHistory(total_songs=5),
    )


@pytest.fixture
def scorer():
    return RecommendationScorer(RecommendationConfig())


class TestScore:
    def test_genre_and_artist_bonuses(self, scorer, profile):
        song = make_song("s1", "Creep", "radiohead", genre="rock")

        result = scorer.score(song, profile)

        assert result.score == 1.0
        assert result.reasons == [GENRE_REASON, ARTIST_REASON]

    def test_genre_outranks_artist_outranks_audio(self, scorer, profile):
        genre_only = make_song("s1", "Song", "Someone", genre="jazz")
        artist_only = make_song("s2", "Nude", "Radiohead")
        audio_only = make_song(
            "s3", "Unknown", "Nobody", audio_features=make_features(energy=0.6, valence=0.4)
        )

        scores = [scorer.score(s, profile).score for s in (genre_only, artist_only, audio_only)]

        assert scores == pytest.approx([0.7, 0.6, 0.5])

    def test_audio_contribution(self, scorer, profile):
        song = make_song(
            "s1", "Unknown", "Nobody", audio_features=make_features(energy=0.6, valence=0.4)
        )

        result = scorer.score(song, profile)

        assert result.score == pytest.approx(0.5)
        assert result.reasons == [AUDIO_REASON]

    def test_sum_clamped_to_one(self, scorer, profile):
        song = make_song(
            "s1",
            "Creep",
            "Radiohead",
            genre="Rock",
            audio_features=make_features(energy=0.6, valence=0.4),
        )

        assert scorer.score(song, profile).score == 1.0

    def test_low_audio_similarity_ignored(self, scorer, profile):
        song = make_song(
            "s1", "Noise", "Nobody", audio_features=make_features(energy=0.0, valence=1.0, tempo=400)
        )

        result = scorer.score(song, profile)

        assert result.score == 0.0
        assert result.reasons == []


class TestRank:
    def test_duplicate_title_artist_keeps_first_seen(self, scorer, profile):
        first = make_song("a", "Creep", "Radiohead", catalog="spotify", genre="rock")
        second = make_song("b", "creep", "RADIOHEAD", catalog="youtube", genre="rock")

        ranked = scorer.rank([first, second], profile, limit=10)

        assert [r.song.id for r in ranked] == ["a"]

    def test_sorted_descending_and_floor_filtered(self, scorer, profile):
        artist_only = make_song("s1", "Nude", "Radiohead")
        both = make_song("s2", "Creep", "Radiohead", genre="rock")
        neither = make_song("s3", "Pop Song", "Someone", genre="pop")

        ranked = scorer.rank([artist_only, both, neither], profile, limit=10)

        assert [r.song.id for r in ranked] == ["s2", "s1"]
        assert ranked[0].score > ranked[1].score

    def test_limit_and_exclusions(self, scorer, profile):
        songs = [make_song(f"s{i}", f"Song {i}", "Radiohead") for i in range(5)]

        ranked = scorer.rank(songs, profile, limit=2, exclude_ids=["s0"])

        assert [r.song.id for r in ranked] == ["s1", "s2"]

    def test_equal_scores_keep_input_order(self, scorer, profile):
        songs = [make_song(f"s{i}", f"Song {i}", "Radiohead") for i in range(3)]

        ranked = scorer.rank(songs, profile, limit=10)

        assert [r.song.id for r in ranked] == ["s0", "s1", "s2"]


class TestMoods:
    def test_table_is_immutable(self):
        assert isinstance(MOOD_CONFIG, MappingProxyType)
        with pytest.raises(TypeError):
            MOOD_CONFIG[Mood.HAPPY] = MOOD_CONFIG[Mood.SAD]

    def test_every_mood_configured(self):
        assert set(MOOD_CONFIG) == set(Mood)

    def test_lookup_is_case_insensitive(self):
        assert get_mood_profile("Happy") is MOOD_CONFIG[Mood.HAPPY]

    def test_unknown_mood(self):
        with pytest.raises(ValueError, match="Unknown mood"):
            get_mood_profile("grumpy")

    def test_fits_by_genre_or_sound(self):
        happy = MOOD_CONFIG[Mood.HAPPY]

        assert happy.fits(make_song("s1", "Song", genre="Disco"))
        assert happy.fits(make_song("s2", "Song", audio_features=make_features(energy=0.9, tempo=128)))
        assert not happy.fits(make_song("s3", "Song", audio_features=make_features(energy=0.2, tempo=128)))
        assert not happy.fits(make_song("s4", "Song", genre="metal"))


class TestAnalyzeMood:
    def test_weighted_keywords_pick_primary_mood(self):
        analysis = analyze_mood([
            QuestionnaireResponse("How do you feel?", "Happy and relaxed"),
            QuestionnaireResponse("How is your energy?", "calm", weight=0.5),
        ])

        assert analysis.primary_mood == Mood.CALM
        assert analysis.scores[Mood.CALM] == pytest.approx(1.5)
        assert analysis.scores[Mood.HAPPY] == pytest.approx(1.0)
        assert analysis.confidence == pytest.approx(1 / 3)
        assert analysis.secondary_moods == [Mood.HAPPY]

    @pytest.mark.parametrize(
        ("answer", "primary", "secondary"),
        [
            (9, Mood.HAPPY, [Mood.ENERGETIC]),
            (2, Mood.SAD, [Mood.CALM]),
            (7, Mood.HAPPY, [Mood.FOCUSED]),
            (5, Mood.CALM, [Mood.FOCUSED]),
        ],
    )
    def test_numeric_scale(self, answer, primary, secondary):
        analysis = analyze_mood([QuestionnaireResponse("Rate your day", answer)])

        assert analysis.primary_mood == primary
        assert analysis.secondary_moods == secondary

    def test_confidence_is_lead_over_runner_up(self):
        analysis = analyze_mood([QuestionnaireResponse("Rate your day", 9)])

        # happy 0.5 against energetic 0.3
        assert analysis.confidence == pytest.approx(0.4)

    def test_tie_keeps_earlier_mood_with_no_confidence(self):
        analysis = analyze_mood([QuestionnaireResponse("How do you feel?", "happy but sad")])

        assert analysis.primary_mood == Mood.HAPPY
        assert analysis.confidence == 0.0
        assert analysis.secondary_moods == [Mood.SAD]

    def test_no_signal_defaults_to_happy(self):
        analysis = analyze_mood([QuestionnaireResponse("Anything else?", "no idea")])

        assert analysis.primary_mood == Mood.HAPPY
        assert analysis.confidence == 0.0
        assert analysis.secondary_moods == []

    def test_named_genres_extend_mood_genres(self):
        analysis = analyze_mood([
            QuestionnaireResponse("How do you feel?", "calm"),
            QuestionnaireResponse("Favourite genre?", "Rock and jazz"),
            QuestionnaireResponse("Last concert?", "a country festival"),
        ])

        assert analysis.recommended_genres == [
            "ambient", "classical", "jazz", "acoustic", "rock"
        ]

    def test_requires_responses(self):
        with pytest.raises(ValueError, match="responses are required"):
            analyze_mood([])

    def test_negative_weight_rejected(self):
        with pytest.raises(ValueError):
            QuestionnaireResponse("How do you feel?", "happy", weight=-1)


class TestRankForMood:
    def test_base_score_plus_preferences(self, scorer, profile):
        plain = make_song("s1", "Get Lucky", "Daft Punk", genre="disco")
        favourite = make_song("s2", "Lucky", "Radiohead", genre="pop")
        off_mood = make_song("s3", "Dirge", "Someone", genre="doom")

        ranked = scorer.rank_for_mood(
            [plain, favourite, off_mood], MOOD_CONFIG[Mood.HAPPY], profile, limit=10
        )

        assert [r.song.id for r in ranked] == ["s2", "s1"]
        assert ranked[0].score == pytest.approx(0.9)
        assert ranked[1].score == pytest.approx(0.8)
        assert ranked[1].reasons == [MOOD_REASON]


class TestRankSimilar:
    def test_scored_against_reference(self, scorer, profile):
        reference = make_song("ref", "Reference", "Band", audio_features=make_features(0.5, 0.5, 0.5, 120))
        close = make_song("s1", "Close", "Other", audio_features=make_features(0.55, 0.5, 0.5, 120))
        far = make_song("s2", "Far", "Other", audio_features=make_features(0.0, 1.0, 0.0, 400))
        featureless = make_song("s3", "Unknown", "Other")

        ranked = scorer.rank_similar(reference, [reference, close, far, featureless], profile)

        assert [r.song.id for r in ranked] == ["s1"]
        assert ranked[0].score > 0.9

    def test_neutral_when_reference_has_no_features(self, scorer, profile):
        reference = make_song("ref", "Reference", "Band")
        candidates = [make_song("s1", "A", "Other"), make_song("s2", "B", "Radiohead")]

        ranked = scorer.rank_similar(reference, candidates, profile)

        assert [r.song.id for r in ranked] == ["s2", "s1"]
        assert ranked[1].score == 0.5
        assert ranked[1].reasons == [NEUTRAL_REASON]
        assert ranked[0].score == pytest.approx(0.6)


class TestRecommendationConfidence:
    def test_scaled_by_profile_completeness(self, scorer, profile):
        songs = scorer.rank([make_song("s1", "Creep", "Radiohead", genre="rock")], profile)

        # five songs of history is half of a complete profile
        assert scorer.recommendation_confidence(profile, songs) == pytest.approx(0.5)

    def test_no_songs(self, scorer, profile):
        assert scorer.recommendation_confidence(profile, []) == 0.0


class TestBuildMusicProfile:
    def test_empty_history_gives_default_profile(self):
        profile = build_music_profile("u1", [])

        assert profile.favorite_genres == ["pop", "rock"]
        assert profile.average_duration == 240
        assert profile.listening_history.total_songs == 0

    def test_favourites_by_frequency_ties_by_first_seen(self):
        songs = [
            make_song("s1", "A", "Blur", genre="britpop"),
            make_song("s2", "B", "Oasis", genre="Rock"),
            make_song("s3", "C", "Oasis", genre="rock"),
            make_song("s4", "D", "Pulp", genre="britpop"),
            make_song("s5", "E", "Suede", genre="glam"),
        ]
        playlists = [
            Playlist(id="p1", name="One", catalog="spotify", owner_id="u1", songs=songs[:3]),
            Playlist(id="p2", name="Two", catalog="spotify", owner_id="u1", songs=songs[3:]),
        ]

        profile = build_music_profile("u1", playlists)

        assert profile.favorite_genres == ["britpop", "rock", "glam"]
        assert profile.favorite_artists == ["Oasis", "Blur", "Pulp", "Suede"]
        assert profile.listening_history.total_songs == 5
        assert profile.listening_history.unique_artists == 4
        assert profile.listening_history.average_playlist_length == 2.5

    def test_caps_favourites(self):
        songs = [make_song(f"s{i}", f"T{i}", f"Artist {i}", genre=f"g{i}") for i in range(15)]
        playlist = Playlist(id="p", name="Big", catalog="spotify", owner_id="u1", songs=songs)

        profile = build_music_profile("u1", [playlist])

        assert len(profile.favorite_genres) == 5
        assert len(profile.favorite_artists) == 10

    def test_audio_preferences_average_featured_songs(self):
        songs = [
            make_song("s1", "A", duration=100, audio_features=make_features(energy=0.2, tempo=100)),
            make_song("s2", "B", duration=300, audio_features=make_features(energy=0.8, tempo=140)),
            make_song("s3", "C", duration=200),
        ]
        playlist = Playlist(id="p", name="Mix", catalog="spotify", owner_id="u1", songs=songs)

        profile = build_music_profile("u1", [playlist])

        assert profile.preferred_energy == pytest.approx(0.5)
        assert profile.preferred_tempo == pytest.approx(120)
        assert profile.average_duration == pytest.approx(200)
