"""Search query planning for cross-catalog song lookup."""

from tunebridge.domain.entities import Song


def plan_queries(song: Song) -> list[str]:
    """Generate search queries for a song, most specific first.

    Earlier queries favour precision (quoted artist and title), later ones
    favour recall (title or artist alone). The matcher runs all of them and
    keeps the best candidate overall.

    Duplicate or blank queries are dropped while preserving order, so a song
    whose title equals its artist still yields a non-empty plan.
    """
    artist = song.artist.strip()
    title = song.title.strip()
    album = song.album.strip() if song.album else ""

    candidates = [
        f'"{artist}" "{title}"',
        f"{artist} {title}",
    ]
    if album:
        candidates.append(f"{artist} {album}")
    candidates.append(title)
    candidates.append(artist)

    queries: list[str] = []
    for query in candidates:
        if query.strip() and query not in queries:
            queries.append(query)
    return queries
