"""Pre-flight compatibility heuristics for playlist conversion.

The analyzer looks only at metadata already on the source songs: it never
calls an external catalog. Its score gates whether a conversion is attempted
at all.
"""

from collections.abc import Sequence
from statistics import fmean

from tunebridge.config.settings import CompatibilityConfig
from tunebridge.domain.entities import CompatibilityReport, Song, estimated_matches

OLD_MUSIC_ISSUE = "Older music may have limited availability"
LONG_SONGS_ISSUE = "Very long songs may not be available on all platforms"


class CompatibilityAnalyzer:
    """Estimates how well a set of songs will survive conversion to a catalog.

    Every catalog genre rule fires at most once per playlist, regardless of how
    many songs carry the offending genre.
    """

    def __init__(self, config: CompatibilityConfig | None = None) -> None:
        self.config = config or CompatibilityConfig()

    def analyze(self, songs: Sequence[Song], target_catalog: str) -> CompatibilityReport:
        """Score a playlist's songs against a target catalog.

        Args:
            songs: Source songs in playlist order
            target_catalog: Catalog the playlist would be converted to

        Returns:
            CompatibilityReport with score clamped to [0, 1]
        """
        if not songs:
            return CompatibilityReport(score=1.0, estimated_match_count=0, issues=[])

        score = 1.0
        issues: list[str] = []

        genres = {song.genre.lower() for song in songs if song.genre}
        for rule in self.config.genre_rules.get(str(target_catalog), []):
            keyword = rule.keyword.lower()
            if any(keyword in genre for genre in genres):
                score -= rule.penalty
                issues.append(rule.issue)

        years = [song.release_year for song in songs if song.release_year]
        if years and fmean(years) < self.config.old_release_year:
            score -= self.config.old_release_penalty
            issues.append(OLD_MUSIC_ISSUE)

        if fmean(song.duration_seconds for song in songs) > self.config.long_duration_seconds:
            score -= self.config.long_duration_penalty
            issues.append(LONG_SONGS_ISSUE)

        return CompatibilityReport(
            score=max(0.0, min(1.0, score)),
            estimated_match_count=estimated_matches(len(songs), score),
            issues=issues,
        )

    def is_acceptable(self, report: CompatibilityReport) -> bool:
        """Whether a report clears the configured minimum score."""
        return report.score >= self.config.min_score
