"""
Config helpers: prompt-prefix language/task ids, CORS origin parsing.
"""
import unittest
from unittest.mock import patch

import config
from core.special_tokens import ENGLISH, FRENCH, GERMAN, TRANSCRIBE, TRANSLATE


class TestPromptTokens(unittest.TestCase):

    def test_language_tokens(self):
        self.assertEqual(config.get_language_token("english"), ENGLISH)
        self.assertEqual(config.get_language_token("German"), GERMAN)
        self.assertEqual(config.get_language_token("FRENCH"), FRENCH)

    def test_task_tokens(self):
        self.assertEqual(config.get_task_token("transcribe"), TRANSCRIBE)
        self.assertEqual(config.get_task_token("translate"), TRANSLATE)

    def test_unknown_names(self):
        with self.assertRaises(ValueError):
            config.get_language_token("klingon")
        with self.assertRaises(ValueError):
            config.get_task_token("summarize")

    def test_defaults_from_env_values(self):
        with patch.object(config, "LANGUAGE", "french"), patch.object(config, "TASK", "translate"):
            self.assertEqual(config.get_language_token(), FRENCH)
            self.assertEqual(config.get_task_token(), TRANSLATE)


class TestCorsOrigins(unittest.TestCase):

    def test_wildcard(self):
        with patch.object(config, "CORS_ORIGINS", "*"):
            self.assertEqual(config.get_cors_origins(), ["*"])

    def test_list(self):
        with patch.object(config, "CORS_ORIGINS", "http://a.test, http://b.test,"):
            self.assertEqual(config.get_cors_origins(), ["http://a.test", "http://b.test"])


class TestDevice(unittest.TestCase):

    def test_explicit_device(self):
        with patch.object(config, "DEVICE", "cpu"):
            self.assertEqual(config.resolve_device(), "cpu")


if __name__ == "__main__":
    unittest.main()
