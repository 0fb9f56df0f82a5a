"""
Unit tests for the lorentz_cascade configuration system.

Tests cover:
- Configuration creation and validation
- Level schedules
- Serialization and deserialization
- Logging setup and config file discovery
"""

import unittest
import json
import logging
from pathlib import Path
from unittest.mock import patch

import torch

from lorentz_cascade.config import (
    BenchmarkConfig,
    CascadeConfig,
    CascadeLevelConfig,
    DEFAULT_LEVELS,
    EngineConfig,
    LoggingConfig,
    LogLevel,
    build_level_schedule,
    get_default_config,
    load_config
)
from tests import TestFixtures


class TestCascadeLevelConfig(unittest.TestCase):
    """Test CascadeLevelConfig class."""

    def test_default_creation(self):
        """Test creating CascadeLevelConfig with default values."""
        level = CascadeLevelConfig()

        self.assertEqual(level.curvature, -1.0)
        self.assertEqual(level.num_heads, 1)
        self.assertEqual(level.dropout, 0.0)
        self.assertEqual(level.temperature, 1.0)

    def test_validation(self):
        """Test validation of level parameters."""
        with self.assertRaises(ValueError) as cm:
            CascadeLevelConfig(curvature=0.0)
        self.assertIn("Curvature must be negative", str(cm.exception))

        with self.assertRaises(ValueError) as cm:
            CascadeLevelConfig(num_heads=0)
        self.assertIn("Number of heads must be positive", str(cm.exception))

        with self.assertRaises(ValueError) as cm:
            CascadeLevelConfig(dropout=1.0)
        self.assertIn("Dropout must be in [0, 1)", str(cm.exception))

        with self.assertRaises(ValueError) as cm:
            CascadeLevelConfig(temperature=0.0)
        self.assertIn("Temperature must be positive", str(cm.exception))

    def test_frozen(self):
        """Levels are immutable."""
        level = CascadeLevelConfig()
        with self.assertRaises(Exception):
            level.curvature = -2.0


class TestLevelSchedule(unittest.TestCase):
    """Test build_level_schedule."""

    def test_single_level_uses_coarse_end(self):
        levels = build_level_schedule(1)
        self.assertEqual(len(levels), 1)
        self.assertAlmostEqual(levels[0].curvature, -0.1)
        self.assertEqual(levels[0].num_heads, 1)
        self.assertAlmostEqual(levels[0].temperature, 1.0)

    def test_interpolation(self):
        levels = build_level_schedule(3)
        self.assertEqual([level.num_heads for level in levels], [1, 2, 4])
        self.assertAlmostEqual(levels[1].curvature, -0.55)
        self.assertAlmostEqual(levels[2].curvature, -1.0)
        self.assertAlmostEqual(levels[1].dropout, 0.05)
        self.assertAlmostEqual(levels[2].temperature, 0.5)

    def test_heads_are_capped(self):
        levels = build_level_schedule(6, max_heads=8)
        self.assertEqual([level.num_heads for level in levels], [1, 2, 4, 8, 8, 8])

    def test_invalid_level_count(self):
        with self.assertRaises(ValueError):
            build_level_schedule(0)


class TestCascadeConfig(unittest.TestCase):
    """Test CascadeConfig class."""

    def test_default_creation(self):
        """Test creating CascadeConfig with default values."""
        config = CascadeConfig()

        self.assertEqual(config.dim, 128)
        self.assertEqual(config.levels, DEFAULT_LEVELS)
        self.assertEqual(config.num_levels, 3)
        self.assertFalse(config.use_tangent_mode)
        self.assertEqual(config.epsilon, 1e-7)
        self.assertEqual(config.torch_dtype, torch.float64)

    def test_levels_from_dicts(self):
        """Plain dictionaries and lists are converted to level configs."""
        config = CascadeConfig(dim=8, levels=[{'curvature': -0.3, 'num_heads': 2}])

        self.assertIsInstance(config.levels, tuple)
        self.assertIsInstance(config.levels[0], CascadeLevelConfig)
        self.assertEqual(config.levels[0].curvature, -0.3)

    def test_validation(self):
        """Test validation of cascade parameters."""
        with self.assertRaises(ValueError) as cm:
            CascadeConfig(dim=0)
        self.assertIn("Dimension must be positive", str(cm.exception))

        with self.assertRaises(ValueError) as cm:
            CascadeConfig(dim=6)
        self.assertIn("must be divisible by num_heads", str(cm.exception))

        with self.assertRaises(ValueError) as cm:
            CascadeConfig(levels=())
        self.assertIn("at least one level", str(cm.exception))

        with self.assertRaises(ValueError) as cm:
            CascadeConfig(epsilon=0.0)
        self.assertIn("Epsilon must be positive", str(cm.exception))

        with self.assertRaises(ValueError) as cm:
            CascadeConfig(dtype="float16")
        self.assertIn("Unsupported dtype", str(cm.exception))


class TestBenchmarkConfig(unittest.TestCase):
    """Test BenchmarkConfig class."""

    def test_default_creation(self):
        config = BenchmarkConfig()

        self.assertEqual(config.dim, 128)
        self.assertEqual(config.seq_len, 100)
        self.assertEqual(config.iterations, 100)
        self.assertEqual(config.frechet_iterations, 50)
        self.assertEqual(config.min_aggregation_speedup, 10.0)

    def test_validation(self):
        with self.assertRaises(ValueError) as cm:
            BenchmarkConfig(iterations=0)
        self.assertIn("iterations must be positive", str(cm.exception))

        with self.assertRaises(ValueError) as cm:
            BenchmarkConfig(curvature=1.0)
        self.assertIn("Curvature must be negative", str(cm.exception))

        # Radius of the ball is 1/sqrt(4) = 0.5
        with self.assertRaises(ValueError) as cm:
            BenchmarkConfig(curvature=-4.0, vector_norm=0.5)
        self.assertIn("inside the Poincaré ball", str(cm.exception))

        with self.assertRaises(ValueError):
            BenchmarkConfig(min_aggregation_speedup=-1.0)


class TestLoggingConfig(unittest.TestCase):
    """Test LoggingConfig class."""

    def setUp(self):
        self.temp_dir = TestFixtures.create_temp_dir()
        self.root_handlers = logging.getLogger().handlers[:]
        self.root_level = logging.getLogger().level

    def tearDown(self):
        root = logging.getLogger()
        for handler in root.handlers:
            handler.close()
        root.handlers = self.root_handlers
        root.setLevel(self.root_level)
        TestFixtures.cleanup_temp_dir(self.temp_dir)

    def test_level_from_string(self):
        config = LoggingConfig(level="debug")
        self.assertEqual(config.level, LogLevel.DEBUG)

    def test_configure_logging(self):
        log_file = self.temp_dir / "engine.log"
        config = LoggingConfig(level=LogLevel.WARNING, file_handler=log_file)
        config.configure_logging()

        root = logging.getLogger()
        self.assertEqual(root.level, logging.WARNING)
        self.assertEqual(len(root.handlers), 2)

        logging.getLogger("lorentz_cascade.test").warning("written")
        for handler in root.handlers:
            handler.flush()
        self.assertIn("written", log_file.read_text())


class TestEngineConfig(unittest.TestCase):
    """Test EngineConfig class."""

    def setUp(self):
        self.temp_dir = TestFixtures.create_temp_dir()

    def tearDown(self):
        TestFixtures.cleanup_temp_dir(self.temp_dir)

    def test_default_creation(self):
        config = get_default_config()

        self.assertIsInstance(config.cascade, CascadeConfig)
        self.assertIsInstance(config.benchmark, BenchmarkConfig)
        self.assertIsInstance(config.logging, LoggingConfig)

    def test_from_dict(self):
        config = EngineConfig.from_dict(TestFixtures.create_config_dict())

        self.assertEqual(config.cascade.dim, 8)
        self.assertEqual(config.cascade.num_levels, 2)
        self.assertEqual(config.cascade.levels[1].num_heads, 2)
        self.assertEqual(config.benchmark.iterations, 3)
        self.assertEqual(config.logging.level, LogLevel.DEBUG)

    def test_from_dict_rejects_invalid_values(self):
        config_dict = TestFixtures.create_config_dict()
        config_dict['cascade']['dim'] = 7

        with self.assertRaises(ValueError):
            EngineConfig.from_dict(config_dict)

    def test_to_dict_is_json_compatible(self):
        config = EngineConfig.from_dict(TestFixtures.create_config_dict())
        config_dict = config.to_dict()

        self.assertEqual(config_dict['logging']['level'], 'DEBUG')
        self.assertEqual(config_dict['cascade']['levels'][0]['curvature'], -0.2)
        json.dumps(config_dict)

    def test_save_and_load_round_trip(self):
        config = EngineConfig.from_dict(TestFixtures.create_config_dict())
        config_path = self.temp_dir / "nested" / "config.json"
        config.save(config_path)

        self.assertTrue(config_path.exists())
        loaded = EngineConfig.from_file(config_path)

        self.assertEqual(loaded.cascade, config.cascade)
        self.assertEqual(loaded.benchmark, config.benchmark)
        self.assertEqual(loaded.logging.level, config.logging.level)

    def test_from_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            EngineConfig.from_file(self.temp_dir / "missing.json")

    def test_load_config(self):
        config_path = self.temp_dir / "config.json"
        with open(config_path, 'w') as f:
            json.dump(TestFixtures.create_config_dict(), f)

        self.assertEqual(load_config(config_path).cascade.dim, 8)
        self.assertEqual(load_config(self.temp_dir / "missing.json").cascade.dim, 128)

    @patch('lorentz_cascade.config.Path.exists', return_value=False)
    def test_load_config_without_files(self, mock_exists):
        config = load_config()
        self.assertEqual(config.cascade.dim, 128)


if __name__ == '__main__':
    unittest.main()
