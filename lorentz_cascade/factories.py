"""
Factory patterns for lorentz_cascade components.

This module provides convenience constructors for cascades, configuration
presets, and a registry that builds attention engines by name.
"""

from dataclasses import asdict
from typing import Any, Callable, Dict, Optional, Tuple, Union
import copy
import logging

from .config import CascadeConfig, EngineConfig, build_level_schedule
from .core.math_ops import DEFAULT_EPSILON
from .layers.attention import LorentzAttention
from .layers.cascade import AdaptiveCascadeAttention, LorentzCascadeAttention
from .exceptions import ConfigurationError


logger = logging.getLogger(__name__)


def create_cascade_attention(
    dim: int,
    num_levels: int = 3,
    use_tangent_mode: bool = False,
    curvature_range: Tuple[float, float] = (-0.1, -1.0),
    epsilon: float = DEFAULT_EPSILON
) -> LorentzCascadeAttention:
    """Build a cascade from the interpolated level schedule."""
    try:
        config = CascadeConfig(
            dim=dim,
            levels=build_level_schedule(num_levels, curvature_range),
            use_tangent_mode=use_tangent_mode,
            epsilon=epsilon,
        )
    except ValueError as e:
        raise ConfigurationError(str(e), {"dim": dim, "num_levels": num_levels}) from e
    return LorentzCascadeAttention(config)


def _schedule_dicts(num_levels: int) -> list:
    return [asdict(level) for level in build_level_schedule(num_levels)]


class ConfigurationFactory:
    """Factory for creating and managing configurations."""

    _preset_configs: Dict[str, Dict[str, Any]] = {
        'default': {},
        'shallow': {
            'cascade': {
                'levels': [
                    {'curvature': -0.1, 'num_heads': 1, 'dropout': 0.0, 'temperature': 1.0},
                    {'curvature': -1.0, 'num_heads': 2, 'dropout': 0.1, 'temperature': 0.5},
                ]
            },
            'benchmark': {
                'num_levels': 2
            }
        },
        'deep': {
            'cascade': {
                'levels': _schedule_dicts(5)
            },
            'benchmark': {
                'num_levels': 5
            }
        },
        'tangent': {
            'cascade': {
                'use_tangent_mode': True
            }
        },
        'quick_benchmark': {
            'cascade': {
                'dim': 32
            },
            'benchmark': {
                'dim': 32,
                'seq_len': 20,
                'num_vectors': 20,
                'iterations': 10
            }
        }
    }

    @classmethod
    def register_preset(cls, name: str, config_dict: Dict[str, Any]) -> None:
        """Register a new configuration preset."""
        cls._preset_configs[name] = config_dict
        logger.debug(f"Registered configuration preset: {name}")

    @classmethod
    def create_config(cls, preset: str = 'default', **overrides) -> EngineConfig:
        """Create a configuration from a preset with optional overrides."""
        if preset not in cls._preset_configs:
            available_presets = list(cls._preset_configs.keys())
            raise ConfigurationError(
                f"Unknown preset: {preset}. "
                f"Available presets: {available_presets}"
            )

        config_dict = copy.deepcopy(cls._preset_configs[preset])

        if overrides:
            cls._deep_update(config_dict, overrides)

        try:
            return EngineConfig.from_dict(config_dict)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration for preset '{preset}': {e}") from e

    @classmethod
    def get_available_presets(cls) -> Dict[str, Dict[str, Any]]:
        """Get all available configuration presets."""
        return cls._preset_configs.copy()

    @classmethod
    def _deep_update(cls, base_dict: Dict[str, Any], update_dict: Dict[str, Any]) -> None:
        """Deep update a dictionary with another dictionary."""
        for key, value in update_dict.items():
            if key in base_dict and isinstance(base_dict[key], dict) and isinstance(value, dict):
                cls._deep_update(base_dict[key], value)
            else:
                base_dict[key] = value


def _build_lorentz(config: CascadeConfig) -> LorentzAttention:
    # Single engine at the finest level
    return LorentzAttention.from_level(
        config.dim, config.levels[-1], config.epsilon, config.torch_dtype
    )


def _build_cascade(config: CascadeConfig) -> LorentzCascadeAttention:
    return LorentzCascadeAttention(config)


def _build_adaptive(config: CascadeConfig) -> AdaptiveCascadeAttention:
    return AdaptiveCascadeAttention(
        config.dim,
        max_levels=config.num_levels,
        use_tangent_mode=config.use_tangent_mode,
        curvature_range=(config.levels[0].curvature, config.levels[-1].curvature),
        epsilon=config.epsilon,
    )


class AttentionFactory:
    """Factory for creating attention engines by name."""

    _builder_registry: Dict[str, Callable[[CascadeConfig], Any]] = {
        'lorentz': _build_lorentz,
        'cascade': _build_cascade,
        'adaptive': _build_adaptive,
    }

    @classmethod
    def register_builder(cls, name: str, builder: Callable[[CascadeConfig], Any]) -> None:
        """Register a new attention builder."""
        if not callable(builder):
            raise ConfigurationError("Attention builder must be callable")

        cls._builder_registry[name] = builder
        logger.debug(f"Registered attention builder: {name}")

    @classmethod
    def create(cls, name: str = 'cascade',
               config: Optional[Union[CascadeConfig, EngineConfig]] = None):
        """Create an attention engine by name."""
        if name not in cls._builder_registry:
            available = list(cls._builder_registry.keys())
            raise ConfigurationError(
                f"Unknown attention type: {name}. "
                f"Available types: {available}"
            )

        if config is None:
            config = CascadeConfig()
        elif isinstance(config, EngineConfig):
            config = config.cascade

        return cls._builder_registry[name](config)

    @classmethod
    def get_available_types(cls) -> Dict[str, Callable[[CascadeConfig], Any]]:
        """Get all registered attention builders."""
        return cls._builder_registry.copy()
