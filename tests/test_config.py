"""Tests for environment-driven settings"""

import os
import unittest
from unittest.mock import patch

from vodpack.config import env_int

class TestEnvInt(unittest.TestCase):
    def test_unset_uses_default(self):
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(env_int("VODPACK_CONCURRENCY", 1), 1)

    def test_valid_value(self):
        with patch.dict(os.environ, {"VODPACK_CONCURRENCY": " 3 "}):
            self.assertEqual(env_int("VODPACK_CONCURRENCY", 1), 3)

    def test_invalid_values_fall_back(self):
        for raw in ("two", "1.5", "0", "-2", ""):
            with self.subTest(raw=raw):
                with patch.dict(os.environ, {"VODPACK_CONCURRENCY": raw}):
                    self.assertEqual(env_int("VODPACK_CONCURRENCY", 1), 1)

if __name__ == "__main__":
    unittest.main()
