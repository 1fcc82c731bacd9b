import unittest
from unittest.mock import MagicMock, patch

from fastapi import HTTPException

from song_degrees.api import (
    AnalyzeRequest,
    ConnectionInfo,
    PlaylistRequest,
    SongInfo,
    SongSearchRequest,
    analyze,
    export_playlist,
    health_check,
    playlist,
    search_song,
)
from song_degrees.errors import OracleUnavailableError
from song_degrees.models import SimilarArtist, Song


def _song_info(song_id: str, title: str, artist: str) -> SongInfo:
    return SongInfo(id=song_id, title=title, artist=artist)


def _connection_info(first: SongInfo, second: SongInfo, degrees: int, similarity: float) -> ConnectionInfo:
    return ConnectionInfo(
        song1=first, song2=second, degrees=degrees, path=[first.artist, second.artist], similarity=similarity,
    )


class SearchSongTests(unittest.TestCase):
    def test_returns_song(self) -> None:
        fake_service = MagicMock()
        fake_service.search_track = MagicMock(return_value=Song(id="s1", title="Hello", artist="Adele", listeners=10))

        with patch("song_degrees.api.get_lastfm_service", return_value=fake_service):
            response = search_song(SongSearchRequest(query="hello"))

        self.assertEqual(response.id, "s1")
        self.assertEqual(response.artist, "Adele")
        self.assertEqual(response.listeners, 10)
        fake_service.search_track.assert_called_once_with("hello")

    def test_returns_404_when_not_found(self) -> None:
        fake_service = MagicMock()
        fake_service.search_track = MagicMock(return_value=None)

        with patch("song_degrees.api.get_lastfm_service", return_value=fake_service):
            with self.assertRaises(HTTPException) as exc:
                search_song(SongSearchRequest(query="zzzz"))

        self.assertEqual(exc.exception.status_code, 404)

    def test_returns_502_when_lastfm_unavailable(self) -> None:
        fake_service = MagicMock()
        fake_service.search_track = MagicMock(side_effect=OracleUnavailableError("timeout"))

        with patch("song_degrees.api.get_lastfm_service", return_value=fake_service):
            with self.assertRaises(HTTPException) as exc:
                search_song(SongSearchRequest(query="hello"))

        self.assertEqual(exc.exception.status_code, 502)

    def test_returns_500_without_credentials(self) -> None:
        with patch("song_degrees.api.get_lastfm_service", side_effect=ValueError("Missing Last.fm credentials")):
            with self.assertRaises(HTTPException) as exc:
                search_song(SongSearchRequest(query="hello"))

        self.assertEqual(exc.exception.status_code, 500)


class AnalyzeTests(unittest.TestCase):
    def test_analyzes_all_pairs(self) -> None:
        fake_service = MagicMock()
        fake_service.get_similar_artists = MagicMock(
            side_effect=lambda name, limit: [SimilarArtist("Coldplay", 0.8)] if name == "Adele" else []
        )
        fake_service.get_track_tags = MagicMock(return_value={"pop"})
        request = AnalyzeRequest(songs=[
            _song_info("1", "Hello", "Adele"),
            _song_info("2", "Someone Like You", "Adele"),
            _song_info("3", "Yellow", "Coldplay"),
        ])

        with patch("song_degrees.api.get_lastfm_service", return_value=fake_service):
            response = analyze(request)

        self.assertEqual(response.total_analyzed, 3)
        self.assertEqual(response.lowest_degrees, 0)
        self.assertEqual([c.degrees for c in response.connections], [0, 1, 1])
        self.assertEqual(response.connections[0].path, ["Adele"])
        self.assertEqual(response.connections[0].similarity, 1.0)

    def test_requires_two_songs(self) -> None:
        request = AnalyzeRequest(songs=[_song_info("1", "Hello", "Adele")])

        with self.assertRaises(HTTPException) as exc:
            analyze(request)

        self.assertEqual(exc.exception.status_code, 422)


class PlaylistTests(unittest.TestCase):
    def setUp(self) -> None:
        self.a = _song_info("a", "A", "Artist A")
        self.b = _song_info("b", "B", "Artist B")
        self.c = _song_info("c", "C", "Artist C")
        self.connections = [
            _connection_info(self.a, self.b, 1, 0.9),
            _connection_info(self.a, self.c, 3, 0.1),
            _connection_info(self.b, self.c, 2, 0.5),
        ]

    def test_optimal_playlist(self) -> None:
        response = playlist(PlaylistRequest(songs=[self.a, self.b, self.c], connections=self.connections))

        self.assertEqual(response.strategy, "optimal")
        self.assertEqual([t.song.id for t in response.tracks], ["a", "b", "c"])
        self.assertEqual(response.tracks[0].next_connection.degrees, 1)
        self.assertIsNone(response.tracks[2].next_connection)
        self.assertEqual(response.lines[0], '1. "A" by Artist A')
        self.assertEqual(response.filename, "playlist-optimal.txt")
        self.assertEqual(response.stats.strong_connections, 1)
        self.assertEqual(response.stats.total_tracks, 3)

    def test_random_playlist_with_seed_is_repeatable(self) -> None:
        request = PlaylistRequest(
            songs=[self.a, self.b, self.c], connections=self.connections, strategy="random", seed=11,
        )

        first = playlist(request)
        second = playlist(request)

        self.assertEqual([t.song.id for t in first.tracks], [t.song.id for t in second.tracks])

    def test_empty_song_set_returns_422(self) -> None:
        with self.assertRaises(HTTPException) as exc:
            playlist(PlaylistRequest(songs=[]))

        self.assertEqual(exc.exception.status_code, 422)

    def test_duplicate_connection_returns_400(self) -> None:
        connections = self.connections + [_connection_info(self.b, self.a, 2, 0.3)]

        with self.assertRaises(HTTPException) as exc:
            playlist(PlaylistRequest(songs=[self.a, self.b, self.c], connections=connections))

        self.assertEqual(exc.exception.status_code, 400)

    def test_export_returns_text_attachment(self) -> None:
        response = export_playlist(PlaylistRequest(
            songs=[self.a, self.b, self.c], connections=self.connections, strategy="similarity",
        ))

        self.assertEqual(response.body.decode("utf-8"), '1. "A" by Artist A\n2. "B" by Artist B\n3. "C" by Artist C')
        self.assertIn('filename="playlist-similarity.txt"', response.headers["content-disposition"])


class HealthTests(unittest.TestCase):
    def test_health(self) -> None:
        self.assertEqual(health_check(), {"status": "ok"})


if __name__ == "__main__":
    unittest.main()
