import os
import unittest
from unittest.mock import patch

from portfolio_dash.config import load_settings
from portfolio_dash.errors import ConfigError


class SettingsTests(unittest.TestCase):
    def test_missing_credentials_raise_config_error(self):
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ConfigError) as ctx:
                load_settings()
        self.assertIn("PORTFOLIO_API_KEY", str(ctx.exception))
        self.assertIn("PORTFOLIO_BASE_URL", str(ctx.exception))

    def test_defaults_from_environment(self):
        env = {"PORTFOLIO_BASE_URL": "https://api.example", "PORTFOLIO_API_KEY": "k"}
        with patch.dict(os.environ, env, clear=True):
            settings = load_settings()
        self.assertEqual(settings.http_timeout_seconds, 20.0)
        self.assertEqual(settings.ticker_concurrency, 8)
        self.assertEqual(settings.portfolio_api_key, "k")

    def test_invalid_timeout(self):
        env = {"PORTFOLIO_BASE_URL": "https://api.example", "PORTFOLIO_API_KEY": "k", "HTTP_TIMEOUT_SECONDS": "0"}
        with patch.dict(os.environ, env, clear=True):
            with self.assertRaises(ConfigError) as ctx:
                load_settings()
        self.assertIn("HTTP_TIMEOUT_SECONDS", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
