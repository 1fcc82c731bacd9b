import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from song_degrees.config import Settings, env_float, env_int, load_local_env_file


class ConfigTests(unittest.TestCase):
    def test_load_local_env_file_loads_missing_values_only(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            env_path = Path(tmpdir) / ".env"
            env_path.write_text(
                """
# comment
LASTFM_API_KEY=test-key
PLAYLIST_STRATEGY='random'
KEEP_ME=from_file
                """.strip(),
                encoding="utf-8",
            )

            with patch.dict("os.environ", {"KEEP_ME": "existing"}):
                os.environ.pop("LASTFM_API_KEY", None)
                os.environ.pop("PLAYLIST_STRATEGY", None)
                load_local_env_file(str(env_path))
                self.assertEqual(os.environ.get("LASTFM_API_KEY"), "test-key")
                self.assertEqual(os.environ.get("PLAYLIST_STRATEGY"), "random")
                self.assertEqual(os.environ.get("KEEP_ME"), "existing")

    def test_missing_env_file_is_ignored(self) -> None:
        load_local_env_file("/nonexistent/.env")

    def test_env_int_uses_fallback_for_empty_and_invalid(self) -> None:
        with patch.dict("os.environ", {"SIMILAR_ARTIST_LIMIT": ""}):
            self.assertEqual(env_int("SIMILAR_ARTIST_LIMIT", 50), 50)
        with patch.dict("os.environ", {"SIMILAR_ARTIST_LIMIT": "not-a-number"}):
            self.assertEqual(env_int("SIMILAR_ARTIST_LIMIT", 50), 50)
        with patch.dict("os.environ", {"SIMILAR_ARTIST_LIMIT": "30"}):
            self.assertEqual(env_int("SIMILAR_ARTIST_LIMIT", 50), 30)

    def test_env_float(self) -> None:
        with patch.dict("os.environ", {"LASTFM_TIMEOUT": "2.5"}):
            self.assertEqual(env_float("LASTFM_TIMEOUT", 10.0), 2.5)
        with patch.dict("os.environ", {"LASTFM_TIMEOUT": "soon"}):
            self.assertEqual(env_float("LASTFM_TIMEOUT", 10.0), 10.0)


class SettingsTests(unittest.TestCase):
    def test_defaults(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            settings = Settings.from_env()

        self.assertIsNone(settings.lastfm_api_key)
        self.assertEqual(settings.lastfm_timeout, 10.0)
        self.assertEqual(settings.lastfm_max_retries, 3)
        self.assertEqual(settings.similar_artist_limit, 50)
        self.assertEqual(settings.playlist_strategy, "optimal")
        self.assertEqual(settings.port, 8000)

    def test_reads_environment(self) -> None:
        env = {
            "LASTFM_API_KEY": "abc",
            "LASTFM_TIMEOUT": "3",
            "LASTFM_MAX_RETRIES": "5",
            "SIMILAR_ARTIST_LIMIT": "20",
            "PLAYLIST_STRATEGY": "Similarity",
            "PORT": "9000",
        }
        with patch.dict("os.environ", env, clear=True):
            settings = Settings.from_env()

        self.assertEqual(settings.lastfm_api_key, "abc")
        self.assertEqual(settings.lastfm_timeout, 3.0)
        self.assertEqual(settings.lastfm_max_retries, 5)
        self.assertEqual(settings.similar_artist_limit, 20)
        self.assertEqual(settings.playlist_strategy, "similarity")
        self.assertEqual(settings.port, 9000)

    def test_unknown_strategy_falls_back_to_optimal(self) -> None:
        with patch.dict("os.environ", {"PLAYLIST_STRATEGY": "shortest"}, clear=True):
            self.assertEqual(Settings.from_env().playlist_strategy, "optimal")


if __name__ == "__main__":
    unittest.main()
