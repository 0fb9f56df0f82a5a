"""
lorentz_cascade - multi-scale attention on the Lorentz hyperboloid

This package attends over sets of embeddings using geodesic distance on the
hyperboloid model of hyperbolic space, aggregates with a closed-form centroid
instead of an iterative Fréchet mean, and composes several curvatures into a
coarse-to-fine cascade.

Main components:
- Geometry primitives on the hyperboloid
- Single-level multi-head attention
- Cascade attention and the adaptive depth selector
- Configuration, factories and a benchmark harness

Example usage:
    from lorentz_cascade import CascadeConfig, LorentzCascadeAttention

    cascade = LorentzCascadeAttention(CascadeConfig(dim=16))
    result = cascade.compute(query, keys, values)
    print(result.projected, result.curvatures_used)
"""

__version__ = "1.0.0"

from .config import (
    BenchmarkConfig,
    CascadeConfig,
    CascadeLevelConfig,
    EngineConfig,
    LoggingConfig,
    LogLevel,
    build_level_schedule,
    get_default_config,
    load_config,
)

from .exceptions import (
    BenchmarkError,
    ConfigurationError,
    ErrorHandler,
    InvalidArgumentError,
    LorentzCascadeError,
    PerformanceContractError,
    handle_error,
)

from .core import (
    HyperboloidPoint,
    LorentzManifold,
    centroid,
    distance,
    exp_map,
    log_map,
    minkowski_inner,
    parallel_transport,
    to_euclidean,
    to_hyperboloid,
)

from .layers import (
    AdaptiveCascadeAttention,
    AttentionMetrics,
    AttentionResult,
    LorentzAttention,
    LorentzCascadeAttention,
    LorentzCrossAttention,
    LorentzSelfAttention,
)

from .factories import AttentionFactory, ConfigurationFactory, create_cascade_attention

__all__ = [
    # Configuration
    "BenchmarkConfig",
    "CascadeConfig",
    "CascadeLevelConfig",
    "EngineConfig",
    "LoggingConfig",
    "LogLevel",
    "build_level_schedule",
    "get_default_config",
    "load_config",

    # Exceptions
    "BenchmarkError",
    "ConfigurationError",
    "ErrorHandler",
    "InvalidArgumentError",
    "LorentzCascadeError",
    "PerformanceContractError",
    "handle_error",

    # Geometry
    "HyperboloidPoint",
    "LorentzManifold",
    "centroid",
    "distance",
    "exp_map",
    "log_map",
    "minkowski_inner",
    "parallel_transport",
    "to_euclidean",
    "to_hyperboloid",

    # Attention
    "AdaptiveCascadeAttention",
    "AttentionMetrics",
    "AttentionResult",
    "LorentzAttention",
    "LorentzCascadeAttention",
    "LorentzCrossAttention",
    "LorentzSelfAttention",

    # Factories
    "AttentionFactory",
    "ConfigurationFactory",
    "create_cascade_attention",
]
