from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

# Degrees at or below this count as a strong link between two songs.
STRONG_CONNECTION_MAX_DEGREES = 1


@dataclass(frozen=True, slots=True)
class Song:
    id: str
    title: str
    artist: str
    mbid: str | None = None
    listeners: int | None = None
    playcount: int | None = None


@dataclass(frozen=True, slots=True)
class SimilarArtist:
    name: str
    match: float


@dataclass(frozen=True, slots=True)
class DegreesResult:
    degrees: int
    path: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class Connection:
    song1: Song
    song2: Song
    degrees: int
    path: tuple[str, ...]
    similarity: float

    def involves(self, song: Song) -> bool:
        return song.id in (self.song1.id, self.song2.id)

    @property
    def is_strong(self) -> bool:
        return self.degrees <= STRONG_CONNECTION_MAX_DEGREES

    def transition(self) -> TransitionInfo:
        return TransitionInfo(degrees=self.degrees, similarity=self.similarity)


@dataclass(frozen=True, slots=True)
class TransitionInfo:
    degrees: int
    similarity: float


@dataclass(slots=True)
class PlaylistTrack:
    song: Song
    position: int
    next_connection: TransitionInfo | None = None


@dataclass(slots=True)
class PlaylistStats:
    avg_degrees: float
    avg_similarity: float
    strong_connections: int
    total_connections: int
    total_tracks: int


@dataclass(slots=True)
class AnalysisResult:
    connections: list[Connection] = field(default_factory=list)
    lowest_degrees: int = 0
    total_analyzed: int = 0


class SimilarityOracle(Protocol):
    """Source of artist similarity and track tags, e.g. Last.fm."""

    def get_similar_artists(self, artist_name: str, limit: int) -> list[SimilarArtist]:
        ...

    def get_track_tags(self, artist: str, track: str) -> set[str]:
        ...

