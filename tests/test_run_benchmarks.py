"""
Unit tests for the benchmark command line.

Tests cover:
- Argument parsing
- Mapping of command line flags onto the benchmark configuration
"""

import logging
import unittest

import run_benchmarks
from lorentz_cascade.config import LogLevel
from tests import TestFixtures


class TestCreateConfigFromArgs(unittest.TestCase):
    """Test create_config_from_args."""

    def setUp(self):
        self.temp_dir = TestFixtures.create_temp_dir()
        self.root_handlers = logging.getLogger().handlers[:]
        self.root_level = logging.getLogger().level
        self.parser = run_benchmarks.create_argument_parser()

    def tearDown(self):
        root = logging.getLogger()
        root.handlers[:] = self.root_handlers
        root.setLevel(self.root_level)
        TestFixtures.cleanup_temp_dir(self.temp_dir)

    def _config(self, *argv):
        # Point at a missing file so no user config is picked up
        missing = str(self.temp_dir / "missing.json")
        args = self.parser.parse_args(["--config", missing] + list(argv))
        return run_benchmarks.create_config_from_args(args)

    def test_defaults(self):
        config = self._config()

        self.assertEqual(config.benchmark.seq_len, 100)
        self.assertEqual(config.benchmark.num_vectors, 100)

    def test_seq_len_and_num_vectors_are_independent(self):
        config = self._config("--seq-len", "12", "--num-vectors", "40")

        self.assertEqual(config.benchmark.seq_len, 12)
        self.assertEqual(config.benchmark.num_vectors, 40)

    def test_seq_len_leaves_num_vectors(self):
        config = self._config("--seq-len", "12")

        self.assertEqual(config.benchmark.seq_len, 12)
        self.assertEqual(config.benchmark.num_vectors, 100)

    def test_other_overrides(self):
        config = self._config("--dim", "16", "--iterations", "4", "--frechet-iterations", "7",
                              "--levels", "2", "--seed", "5", "--log-level", "WARNING")

        self.assertEqual(config.benchmark.dim, 16)
        self.assertEqual(config.benchmark.iterations, 4)
        self.assertEqual(config.benchmark.frechet_iterations, 7)
        self.assertEqual(config.benchmark.num_levels, 2)
        self.assertEqual(config.benchmark.seed, 5)
        self.assertEqual(config.logging.level, LogLevel.WARNING)

    def test_invalid_override(self):
        with self.assertRaises(ValueError):
            self._config("--num-vectors", "0")


if __name__ == '__main__':
    unittest.main()
