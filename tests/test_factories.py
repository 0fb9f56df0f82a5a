"""
Unit tests for the lorentz_cascade factory classes.

Tests cover:
- Cascade construction from the level schedule
- Configuration presets and overrides
- The attention builder registry
"""

import unittest

from lorentz_cascade.config import CascadeConfig, EngineConfig
from lorentz_cascade.exceptions import ConfigurationError
from lorentz_cascade.factories import (
    AttentionFactory,
    ConfigurationFactory,
    create_cascade_attention
)
from lorentz_cascade.layers.attention import LorentzAttention
from lorentz_cascade.layers.cascade import AdaptiveCascadeAttention, LorentzCascadeAttention
from tests import TestFixtures, TEST_DIM


class TestCreateCascadeAttention(unittest.TestCase):
    """Test create_cascade_attention."""

    def test_default_schedule(self):
        cascade = create_cascade_attention(TEST_DIM)

        self.assertIsInstance(cascade, LorentzCascadeAttention)
        self.assertEqual(cascade.num_levels, 3)
        self.assertAlmostEqual(cascade.curvatures[0], -0.1)
        self.assertAlmostEqual(cascade.curvatures[-1], -1.0)

    def test_custom_range_and_mode(self):
        cascade = create_cascade_attention(
            TEST_DIM, num_levels=2, use_tangent_mode=True, curvature_range=(-0.2, -2.0)
        )

        self.assertAlmostEqual(cascade.curvatures[0], -0.2)
        self.assertAlmostEqual(cascade.curvatures[1], -2.0)
        self.assertTrue(cascade.get_config().use_tangent_mode)

    def test_indivisible_dimension(self):
        with self.assertRaises(ConfigurationError) as cm:
            create_cascade_attention(6, num_levels=3)

        self.assertIn("divisible by num_heads", str(cm.exception))
        self.assertIsInstance(cm.exception.__cause__, ValueError)

    def test_invalid_schedule(self):
        with self.assertRaises(ConfigurationError):
            create_cascade_attention(TEST_DIM, curvature_range=(0.5, -1.0))


class TestConfigurationFactory(unittest.TestCase):
    """Test ConfigurationFactory class."""

    def setUp(self):
        """Set up test fixtures."""
        # Store original presets to restore after tests
        self.original_presets = ConfigurationFactory._preset_configs.copy()

    def tearDown(self):
        """Restore original presets."""
        ConfigurationFactory._preset_configs = self.original_presets

    def test_create_default_config(self):
        config = ConfigurationFactory.create_config('default')

        self.assertIsInstance(config, EngineConfig)
        self.assertEqual(config.cascade.dim, 128)
        self.assertEqual(config.cascade.num_levels, 3)

    def test_create_shallow_config(self):
        config = ConfigurationFactory.create_config('shallow')

        self.assertEqual(config.cascade.num_levels, 2)
        self.assertEqual(config.benchmark.num_levels, 2)

    def test_create_deep_config(self):
        config = ConfigurationFactory.create_config('deep')

        self.assertEqual(config.cascade.num_levels, 5)
        self.assertEqual([level.num_heads for level in config.cascade.levels], [1, 2, 4, 8, 8])

    def test_create_tangent_config(self):
        config = ConfigurationFactory.create_config('tangent')
        self.assertTrue(config.cascade.use_tangent_mode)

    def test_create_quick_benchmark_config(self):
        config = ConfigurationFactory.create_config('quick_benchmark')

        self.assertEqual(config.cascade.dim, 32)
        self.assertEqual(config.benchmark.seq_len, 20)
        self.assertEqual(config.benchmark.iterations, 10)

    def test_create_config_with_overrides(self):
        """Test creating configuration with overrides."""
        overrides = {
            'cascade': {'dim': 16},
            'benchmark': {'iterations': 5}
        }

        config = ConfigurationFactory.create_config('shallow', **overrides)

        self.assertEqual(config.cascade.dim, 16)
        self.assertEqual(config.cascade.num_levels, 2)
        self.assertEqual(config.benchmark.iterations, 5)

    def test_overrides_do_not_leak_into_presets(self):
        ConfigurationFactory.create_config('quick_benchmark', benchmark={'iterations': 2})
        config = ConfigurationFactory.create_config('quick_benchmark')
        self.assertEqual(config.benchmark.iterations, 10)

    def test_invalid_overrides(self):
        with self.assertRaises(ConfigurationError) as cm:
            ConfigurationFactory.create_config('default', cascade={'dim': 6})
        self.assertIn("Invalid configuration", str(cm.exception))

        with self.assertRaises(ConfigurationError):
            ConfigurationFactory.create_config('default', cascade={'unknown': 1})

    def test_create_unknown_preset(self):
        """Test creating configuration with unknown preset."""
        with self.assertRaises(ConfigurationError) as cm:
            ConfigurationFactory.create_config('unknown_preset')

        self.assertIn("Unknown preset", str(cm.exception))
        self.assertIn("Available presets", str(cm.exception))

    def test_register_preset(self):
        """Test registering a new preset."""
        ConfigurationFactory.register_preset('custom', TestFixtures.create_config_dict())

        config = ConfigurationFactory.create_config('custom')
        self.assertEqual(config.cascade.dim, 8)
        self.assertEqual(config.benchmark.iterations, 3)

    def test_get_available_presets(self):
        presets = ConfigurationFactory.get_available_presets()

        self.assertIsInstance(presets, dict)
        for name in ['default', 'shallow', 'deep', 'tangent', 'quick_benchmark']:
            self.assertIn(name, presets)


class TestAttentionFactory(unittest.TestCase):
    """Test AttentionFactory class."""

    def setUp(self):
        self.original_builders = AttentionFactory._builder_registry.copy()
        self.config = CascadeConfig(dim=TEST_DIM)

    def tearDown(self):
        AttentionFactory._builder_registry = self.original_builders

    def test_create_lorentz(self):
        attention = AttentionFactory.create('lorentz', self.config)

        self.assertIsInstance(attention, LorentzAttention)
        self.assertEqual(attention.curvature, -1.0)
        self.assertEqual(attention.num_heads, 4)

    def test_create_cascade(self):
        cascade = AttentionFactory.create('cascade', self.config)

        self.assertIsInstance(cascade, LorentzCascadeAttention)
        self.assertIs(cascade.get_config(), self.config)

    def test_create_adaptive(self):
        adaptive = AttentionFactory.create('adaptive', self.config)

        self.assertIsInstance(adaptive, AdaptiveCascadeAttention)
        self.assertEqual(adaptive.max_levels, 3)

    def test_create_from_engine_config(self):
        engine_config = EngineConfig.from_dict(TestFixtures.create_config_dict())
        cascade = AttentionFactory.create('cascade', engine_config)

        self.assertEqual(cascade.num_levels, 2)
        self.assertEqual(cascade.curvatures, [-0.2, -1.0])

    def test_create_default(self):
        cascade = AttentionFactory.create()
        self.assertEqual(cascade.get_config().dim, 128)

    def test_create_unknown_type(self):
        with self.assertRaises(ConfigurationError) as cm:
            AttentionFactory.create('euclidean')
        self.assertIn("Unknown attention type", str(cm.exception))

    def test_register_builder(self):
        AttentionFactory.register_builder('finest_cascade', lambda config: create_cascade_attention(
            config.dim, num_levels=1, curvature_range=(-1.0, -1.0)
        ))

        cascade = AttentionFactory.create('finest_cascade', self.config)
        self.assertEqual(cascade.curvatures, [-1.0])
        self.assertIn('finest_cascade', AttentionFactory.get_available_types())

    def test_register_invalid_builder(self):
        with self.assertRaises(ConfigurationError) as cm:
            AttentionFactory.register_builder('broken', "not callable")
        self.assertIn("must be callable", str(cm.exception))


if __name__ == '__main__':
    unittest.main()
