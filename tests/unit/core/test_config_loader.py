import unittest
import os
import yaml
from unittest.mock import patch, mock_open

from pydantic import ValidationError

from core.config_loader import load_config, AppConfig, MatcherConfig

MATCHER_ENV_VARS = ("MATCHES_PER_SECOND", "MATCH_AMOUNT", "MATCH_METRIC", "LOG_LEVEL")


class TestConfigLoader(unittest.TestCase):

    def setUp(self):
        self.sample_config = {
            "matching": {
                "matcher": {
                    "matches_per_second": 4,
                    "match_amount": 2,
                    "metric": "cosine"
                },
                "pairings": {"red": "blue", "blue": "red"}
            },
            "logging": {"level": "DEBUG"}
        }
        self.config_yaml = yaml.dump(self.sample_config)
        # Keep the developer's shell from leaking into assertions
        self.env_patch = patch.dict(os.environ, {})
        self.env_patch.start()
        for name in MATCHER_ENV_VARS:
            os.environ.pop(name, None)

    def tearDown(self):
        self.env_patch.stop()

    def _load(self, config_yaml):
        with patch("builtins.open", mock_open(read_data=config_yaml)):
            with patch("os.path.exists", return_value=True):
                return load_config("dummy_path.yaml")

    def test_load_config_default(self):
        config = self._load(self.config_yaml)
        self.assertIsInstance(config, AppConfig)
        self.assertEqual(config.matching.matcher.matches_per_second, 4.0)
        self.assertEqual(config.matching.matcher.match_amount, 2)
        self.assertEqual(config.matching.matcher.metric, "cosine")
        self.assertEqual(config.matching.pairings, {"red": "blue", "blue": "red"})
        self.assertEqual(config.logging.level, "DEBUG")

    def test_matcher_defaults(self):
        config = self._load(yaml.dump({}))
        self.assertTrue(config.matching.enabled)
        self.assertEqual(config.matching.matcher.matches_per_second, 10.0)
        self.assertEqual(config.matching.matcher.match_amount, 5)
        self.assertEqual(config.matching.matcher.metric, "squared_euclidean")
        self.assertEqual(config.matching.pairings, {})
        self.assertEqual(config.logging.level, "INFO")

    def test_empty_file(self):
        config = self._load("")
        self.assertIsInstance(config, AppConfig)

    def test_env_var_override_rate_and_amount(self):
        with patch.dict(os.environ, {"MATCHES_PER_SECOND": "0.5", "MATCH_AMOUNT": "7"}):
            config = self._load(self.config_yaml)
        self.assertEqual(config.matching.matcher.matches_per_second, 0.5)
        self.assertEqual(config.matching.matcher.match_amount, 7)
        self.assertEqual(config.matching.matcher.metric, "cosine")

    def test_env_var_override_without_matching_section(self):
        with patch.dict(os.environ, {"MATCH_METRIC": "euclidean"}):
            config = self._load(yaml.dump({"logging": {"level": "WARNING"}}))
        self.assertEqual(config.matching.matcher.metric, "euclidean")
        self.assertEqual(config.matching.matcher.match_amount, 5)

    def test_env_var_override_log_level(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "warning"}):
            config = self._load(self.config_yaml)
        self.assertEqual(config.logging.level, "WARNING")

    def test_missing_path_falls_back_to_repo_config(self):
        opened = []

        def fake_open(path, mode="r"):
            opened.append(path)
            return mock_open(read_data="{}")()

        with patch("os.path.exists", return_value=False):
            with patch("builtins.open", side_effect=fake_open):
                load_config("missing.yaml")

        self.assertTrue(opened[0].endswith(os.path.join("..", "config.yaml")))

    def test_matcher_config_is_frozen(self):
        matcher = MatcherConfig()
        with self.assertRaises(ValidationError):
            matcher.match_amount = 10


if __name__ == '__main__':
    unittest.main()
