"""FastAPI web server for Song Degrees of Separation."""
import random
from typing import Literal

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from song_degrees.analysis import analyze_songs
from song_degrees.config import Settings
from song_degrees.errors import InsufficientInputError, OracleError
from song_degrees.lastfm_service import LastFMService
from song_degrees.models import Connection, Song
from song_degrees.playlist import Playlist, build_playlist
from song_degrees.separation import ConnectionResolver

app = FastAPI(title="Song Degrees of Separation")

# Enable CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class SongInfo(BaseModel):
    """A song as returned by search and sent back for analysis."""
    id: str
    title: str
    artist: str
    mbid: str | None = None
    listeners: int | None = None
    playcount: int | None = None

    def to_song(self) -> Song:
        return Song(**self.model_dump())

    @classmethod
    def from_song(cls, song: Song) -> "SongInfo":
        return cls(
            id=song.id,
            title=song.title,
            artist=song.artist,
            mbid=song.mbid,
            listeners=song.listeners,
            playcount=song.playcount,
        )


class ConnectionInfo(BaseModel):
    song1: SongInfo
    song2: SongInfo
    degrees: int = Field(ge=0)
    path: list[str]
    similarity: float = Field(ge=0.0, le=1.0)

    def to_connection(self) -> Connection:
        return Connection(
            song1=self.song1.to_song(),
            song2=self.song2.to_song(),
            degrees=self.degrees,
            path=tuple(self.path),
            similarity=self.similarity,
        )

    @classmethod
    def from_connection(cls, connection: Connection) -> "ConnectionInfo":
        return cls(
            song1=SongInfo.from_song(connection.song1),
            song2=SongInfo.from_song(connection.song2),
            degrees=connection.degrees,
            path=list(connection.path),
            similarity=connection.similarity,
        )


class SongSearchRequest(BaseModel):
    query: str = Field(min_length=1)


class AnalyzeRequest(BaseModel):
    songs: list[SongInfo]


class AnalyzeResponse(BaseModel):
    connections: list[ConnectionInfo]
    lowest_degrees: int
    total_analyzed: int


class PlaylistRequest(BaseModel):
    songs: list[SongInfo]
    connections: list[ConnectionInfo] = []
    strategy: Literal["optimal", "similarity", "random"] = "optimal"
    seed: int | None = None


class TransitionModel(BaseModel):
    degrees: int
    similarity: float


class PlaylistTrackInfo(BaseModel):
    song: SongInfo
    position: int
    next_connection: TransitionModel | None = None


class PlaylistStatsInfo(BaseModel):
    avg_degrees: float
    avg_similarity: float
    strong_connections: int
    total_connections: int
    total_tracks: int


class PlaylistResponse(BaseModel):
    strategy: str
    tracks: list[PlaylistTrackInfo]
    stats: PlaylistStatsInfo
    lines: list[str]
    filename: str


def get_lastfm_service() -> LastFMService:
    """Initialize Last.fm client from environment settings."""
    settings = Settings.from_env()
    return LastFMService(
        api_key=settings.lastfm_api_key,
        timeout=settings.lastfm_timeout,
        max_retries=settings.lastfm_max_retries,
    )


def _build(request: PlaylistRequest) -> Playlist:
    rng = random.Random(request.seed) if request.seed is not None else None
    try:
        return build_playlist(
            [s.to_song() for s in request.songs],
            [c.to_connection() for c in request.connections],
            strategy=request.strategy,
            rng=rng,
        )
    except InsufficientInputError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.post("/api/songs/search", response_model=SongInfo)
def search_song(request: SongSearchRequest):
    """Find the best Last.fm match for a song title."""
    try:
        song = get_lastfm_service().search_track(request.query)
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except OracleError as e:
        raise HTTPException(status_code=502, detail=f"Last.fm unavailable: {e}")

    if song is None:
        raise HTTPException(status_code=404, detail=f'No results found for "{request.query}"')
    return SongInfo.from_song(song)


@app.post("/api/analyze", response_model=AnalyzeResponse)
def analyze(request: AnalyzeRequest):
    """Compute degrees of separation and similarity for every song pair."""
    if len(request.songs) < 2:
        raise HTTPException(status_code=422, detail="Please add at least 2 songs to analyze")
    try:
        service = get_lastfm_service()
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))

    resolver = ConnectionResolver(service, similar_limit=Settings.from_env().similar_artist_limit)
    try:
        result = analyze_songs([s.to_song() for s in request.songs], resolver)
    except InsufficientInputError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return AnalyzeResponse(
        connections=[ConnectionInfo.from_connection(c) for c in result.connections],
        lowest_degrees=result.lowest_degrees,
        total_analyzed=result.total_analyzed,
    )


@app.post("/api/playlist", response_model=PlaylistResponse)
def playlist(request: PlaylistRequest):
    """Order analysed songs with the requested strategy."""
    built = _build(request)
    stats = built.stats()
    return PlaylistResponse(
        strategy=built.strategy,
        tracks=[
            PlaylistTrackInfo(
                song=SongInfo.from_song(t.song),
                position=t.position,
                next_connection=(
                    TransitionModel(degrees=t.next_connection.degrees, similarity=t.next_connection.similarity)
                    if t.next_connection
                    else None
                ),
            )
            for t in built.tracks
        ],
        stats=PlaylistStatsInfo(
            avg_degrees=stats.avg_degrees,
            avg_similarity=stats.avg_similarity,
            strong_connections=stats.strong_connections,
            total_connections=stats.total_connections,
            total_tracks=stats.total_tracks,
        ),
        lines=built.to_lines(),
        filename=built.filename,
    )


@app.post("/api/playlist/export", response_class=PlainTextResponse)
def export_playlist(request: PlaylistRequest):
    """Download the playlist as playlist-<strategy>.txt."""
    built = _build(request)
    return PlainTextResponse(
        built.to_text(),
        headers={"Content-Disposition": f'attachment; filename="{built.filename}"'},
    )
