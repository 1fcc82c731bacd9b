"""Degrees of separation and tag similarity between two songs."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

from song_degrees.models import Connection, DegreesResult, SimilarArtist, SimilarityOracle, Song

logger = logging.getLogger(__name__)

# Returned when the bounded search finds nothing, or the oracle fails.
NO_CONNECTION_DEGREES = 6
NO_CONNECTION_MARKER = "(no direct connection found)"
ERROR_MARKER = "(error calculating connection)"

DEFAULT_SIMILAR_LIMIT = 50
# How many of an artist's top similar artists are expanded for a 3-hop link.
DEFAULT_EXPANSION_WIDTH = 5


def _fetch_both(
    fn: Callable[..., Any],
    first_args: tuple,
    second_args: tuple,
) -> tuple[Any, Any]:
    with ThreadPoolExecutor(max_workers=2) as pool:
        first = pool.submit(fn, *first_args)
        second = pool.submit(fn, *second_args)
        return first.result(), second.result()


def _usable_artists(artists: Any) -> list[SimilarArtist]:
    """Drop entries a custom oracle may hand back without a string name."""
    usable = []
    for artist in artists or ():
        name = getattr(artist, "name", None)
        if not isinstance(name, str) or not name:
            continue
        match = getattr(artist, "match", None)
        usable.append(SimilarArtist(name, float(match) if isinstance(match, (int, float)) else 0.0))
    return usable


def _usable_tags(tags: Any) -> set[str]:
    return {tag for tag in tags or () if isinstance(tag, str) and tag}


def _contains(artists: list[SimilarArtist], name: str) -> bool:
    target = name.lower()
    return any(artist.name.lower() == target for artist in artists)


def _match_scores(artists: list[SimilarArtist]) -> dict[str, float]:
    scores: dict[str, float] = {}
    for artist in artists:
        scores.setdefault(artist.name.lower(), artist.match)
    return scores


def jaccard(first: set[str], second: set[str]) -> float:
    if not first or not second:
        return 0.0
    left = {tag.lower() for tag in first}
    right = {tag.lower() for tag in second}
    union = left | right
    return len(left & right) / len(union) if union else 0.0


class ConnectionResolver:
    """Computes the connection between a pair of songs from oracle data.

    Oracle failures never escape: degree lookups degrade to
    ``NO_CONNECTION_DEGREES`` with ``ERROR_MARKER`` in the path and
    similarity lookups degrade to 0.
    """

    def __init__(
        self,
        oracle: SimilarityOracle,
        similar_limit: int = DEFAULT_SIMILAR_LIMIT,
        expansion_width: int = DEFAULT_EXPANSION_WIDTH,
    ) -> None:
        self.oracle = oracle
        self.similar_limit = similar_limit
        self.expansion_width = expansion_width

    def resolve_degrees(self, song_a: Song, song_b: Song) -> DegreesResult:
        artist_a = song_a.artist
        artist_b = song_b.artist
        if artist_a.lower() == artist_b.lower():
            return DegreesResult(degrees=0, path=(artist_a,))

        try:
            similar_a, similar_b = _fetch_both(
                self.oracle.get_similar_artists,
                (artist_a, self.similar_limit),
                (artist_b, self.similar_limit),
            )
            similar_a, similar_b = _usable_artists(similar_a), _usable_artists(similar_b)
        except Exception as exc:
            logger.warning("Similar-artist lookup failed for %r / %r: %s", artist_a, artist_b, exc)
            return DegreesResult(NO_CONNECTION_DEGREES, (artist_a, ERROR_MARKER, artist_b))

        if _contains(similar_a, artist_b) or _contains(similar_b, artist_a):
            return DegreesResult(degrees=1, path=(artist_a, artist_b))

        common = self._best_common_artist(similar_a, similar_b)
        if common is not None:
            return DegreesResult(degrees=2, path=(artist_a, common, artist_b))

        for via in similar_a[: self.expansion_width]:
            if _contains(self._expand(via.name), artist_b):
                return DegreesResult(degrees=3, path=(artist_a, via.name, artist_b))
        # Expanding from the other side keeps degrees symmetric in (a, b).
        for via in similar_b[: self.expansion_width]:
            if _contains(self._expand(via.name), artist_a):
                return DegreesResult(degrees=3, path=(artist_a, via.name, artist_b))

        return DegreesResult(NO_CONNECTION_DEGREES, (artist_a, NO_CONNECTION_MARKER, artist_b))

    @staticmethod
    def _best_common_artist(similar_a: list[SimilarArtist], similar_b: list[SimilarArtist]) -> str | None:
        scores_a = _match_scores(similar_a)
        scores_b = _match_scores(similar_b)
        best: str | None = None
        best_score = 0.0
        for artist in similar_a:
            key = artist.name.lower()
            if key not in scores_b:
                continue
            score = scores_a[key] + scores_b[key]
            if best is None or score > best_score:
                best = artist.name
                best_score = score
        return best

    def _expand(self, artist_name: str) -> list[SimilarArtist]:
        try:
            return _usable_artists(self.oracle.get_similar_artists(artist_name, self.similar_limit))
        except Exception as exc:
            logger.warning("Similar-artist expansion failed for %r: %s", artist_name, exc)
            return []

    def resolve_similarity(self, song_a: Song, song_b: Song) -> float:
        try:
            tags_a, tags_b = _fetch_both(
                self.oracle.get_track_tags,
                (song_a.artist, song_a.title),
                (song_b.artist, song_b.title),
            )
            tags_a, tags_b = _usable_tags(tags_a), _usable_tags(tags_b)
        except Exception as exc:
            logger.warning("Tag lookup failed for %r / %r: %s", song_a.title, song_b.title, exc)
            return 0.0
        return jaccard(tags_a, tags_b)

    def resolve_connection(self, song_a: Song, song_b: Song) -> Connection:
        degrees = self.resolve_degrees(song_a, song_b)
        similarity = self.resolve_similarity(song_a, song_b)
        return Connection(
            song1=song_a,
            song2=song_b,
            degrees=degrees.degrees,
            path=degrees.path,
            similarity=similarity,
        )
