import os
import unittest
from pathlib import Path
from unittest.mock import patch

from habit_tracker.config import Environment, LogLevel, StoreBackend, TrackerConfig
from habit_tracker.core.dates import MONDAY, SUNDAY

def make_config(**env: str) -> TrackerConfig:
    with patch.dict(os.environ, env, clear=True):
        return TrackerConfig()

class TestTrackerConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        config = make_config()
        self.assertEqual(config.environment, Environment.DEVELOPMENT)
        self.assertEqual(config.store.backend, StoreBackend.MEMORY)
        self.assertEqual(config.store.path, Path("data") / "habits.json")
        self.assertEqual(config.server.port, 8000)
        self.assertEqual(config.server.allowed_origins, ["*"])
        self.assertEqual(config.tracker.week_starts_on, SUNDAY)
        self.assertEqual(config.log_level, LogLevel.INFO)
        self.assertEqual(config.to_dict()["environment"], "development")

    def test_values_from_environment(self) -> None:
        config = make_config(
            ENVIRONMENT="production",
            STORE_BACKEND="json",
            DATA_DIR="/tmp/habits",
            PORT="9000",
            ALLOWED_ORIGINS="http://a.example, http://b.example",
            WEEK_STARTS_ON="Monday",
            LOG_LEVEL="DEBUG",
        )
        self.assertEqual(config.environment, Environment.PRODUCTION)
        self.assertEqual(config.store.path, Path("/tmp/habits/habits.json"))
        self.assertEqual(config.server.port, 9000)
        self.assertEqual(config.server.allowed_origins, ["http://a.example", "http://b.example"])
        self.assertEqual(config.tracker.week_starts_on, MONDAY)
        self.assertEqual(config.to_dict()["week_starts_on"], "monday")

    def test_all_errors_are_reported_together(self) -> None:
        with self.assertRaises(ValueError) as ctx:
            make_config(STORE_BACKEND="redis", PORT="abc", WEEK_STARTS_ON="friday")

        message = str(ctx.exception)
        self.assertIn("STORE_BACKEND", message)
        self.assertIn("PORT", message)
        self.assertIn("WEEK_STARTS_ON", message)

    def test_port_range(self) -> None:
        with self.assertRaises(ValueError):
            make_config(PORT="70000")

    def test_session_limit(self) -> None:
        self.assertEqual(make_config().server.max_sessions, 100)
        self.assertEqual(make_config(MAX_SESSIONS="5").server.max_sessions, 5)
        with self.assertRaises(ValueError) as ctx:
            make_config(MAX_SESSIONS="0")
        self.assertIn("MAX_SESSIONS", str(ctx.exception))

    def test_logging_config(self) -> None:
        config = make_config(LOG_LEVEL="WARNING")
        logging_config = config.get_logging_config()
        self.assertEqual(logging_config["loggers"][""]["handlers"], ["console"])
        self.assertEqual(logging_config["handlers"]["console"]["level"], "WARNING")

        config = make_config(LOG_TO_FILE="true", LOG_DIR="/tmp/habit-logs")
        logging_config = config.get_logging_config()
        self.assertIn("file", logging_config["handlers"])
        self.assertTrue(logging_config["handlers"]["file"]["filename"].endswith("habit_tracker_development.log"))

if __name__ == "__main__":
    unittest.main()
