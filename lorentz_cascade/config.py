"""
Configuration management for lorentz_cascade.

This module provides the configuration dataclasses for attention engines and
the benchmark harness, with validation on construction and JSON round-trips
for the whole engine configuration.
"""

import json
import logging
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Dict, Any, Optional, Tuple, Union
from enum import Enum

import torch


class LogLevel(Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


DTYPES = {
    "float64": torch.float64,
    "float32": torch.float32,
}


@dataclass(frozen=True)
class CascadeLevelConfig:
    """Configuration of a single cascade level (one curvature)."""
    curvature: float = -1.0
    num_heads: int = 1
    dropout: float = 0.0
    temperature: float = 1.0

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Validate level parameters."""
        if not self.curvature < 0:
            raise ValueError(f"Curvature must be negative, got {self.curvature}")
        if self.num_heads < 1:
            raise ValueError(f"Number of heads must be positive, got {self.num_heads}")
        if not (0 <= self.dropout < 1):
            raise ValueError(f"Dropout must be in [0, 1), got {self.dropout}")
        if not self.temperature > 0:
            raise ValueError(f"Temperature must be positive, got {self.temperature}")


DEFAULT_LEVELS = (
    CascadeLevelConfig(curvature=-0.1, num_heads=1, dropout=0.0, temperature=1.0),
    CascadeLevelConfig(curvature=-0.5, num_heads=2, dropout=0.1, temperature=0.8),
    CascadeLevelConfig(curvature=-1.0, num_heads=4, dropout=0.1, temperature=0.5),
)


def build_level_schedule(
    num_levels: int,
    curvature_range: Tuple[float, float] = (-0.1, -1.0),
    max_heads: int = 8,
    dropout_range: Tuple[float, float] = (0.0, 0.1),
    temperature_range: Tuple[float, float] = (1.0, 0.5)
) -> Tuple[CascadeLevelConfig, ...]:
    """
    Build a coarse-to-fine level schedule by linear interpolation.

    Level i uses t = i/(L-1) (t = 0 for a single level). Curvature, dropout
    and temperature move linearly between their range endpoints and the
    head count doubles per level up to ``max_heads``.

    Args:
        num_levels: Number of levels L
        curvature_range: (coarse, fine) curvatures
        max_heads: Cap on the number of heads
        dropout_range: (first, last) dropout
        temperature_range: (first, last) temperature

    Returns:
        Tuple of CascadeLevelConfig
    """
    if num_levels < 1:
        raise ValueError(f"Number of levels must be positive, got {num_levels}")

    min_c, max_c = curvature_range
    min_d, max_d = dropout_range
    min_t, max_t = temperature_range

    levels = []
    for i in range(num_levels):
        t = i / (num_levels - 1) if num_levels > 1 else 0.0
        levels.append(CascadeLevelConfig(
            curvature=min_c + (max_c - min_c) * t,
            num_heads=min(2 ** i, max_heads),
            dropout=min_d + (max_d - min_d) * t,
            temperature=min_t + (max_t - min_t) * t,
        ))
    return tuple(levels)


@dataclass(frozen=True)
class CascadeConfig:
    """Cascade configuration: embedding size and levels ordered coarse to fine."""
    dim: int = 128
    levels: Tuple[CascadeLevelConfig, ...] = DEFAULT_LEVELS
    use_tangent_mode: bool = False
    epsilon: float = 1e-7
    dtype: str = "float64"

    def __post_init__(self):
        # Accept lists and plain dicts (e.g. from JSON) for the levels
        levels = tuple(
            level if isinstance(level, CascadeLevelConfig) else CascadeLevelConfig(**level)
            for level in self.levels
        )
        object.__setattr__(self, "levels", levels)
        self.validate()

    def validate(self) -> None:
        """Validate cascade parameters."""
        if self.dim < 1:
            raise ValueError(f"Dimension must be positive, got {self.dim}")
        if len(self.levels) == 0:
            raise ValueError("Cascade needs at least one level")
        for i, level in enumerate(self.levels):
            if self.dim % level.num_heads != 0:
                raise ValueError(
                    f"Dimension {self.dim} must be divisible by num_heads "
                    f"{level.num_heads} (level {i})"
                )
        if not self.epsilon > 0:
            raise ValueError(f"Epsilon must be positive, got {self.epsilon}")
        if self.dtype not in DTYPES:
            raise ValueError(f"Unsupported dtype: {self.dtype}")

    @property
    def num_levels(self) -> int:
        return len(self.levels)

    @property
    def torch_dtype(self) -> torch.dtype:
        return DTYPES[self.dtype]


@dataclass
class BenchmarkConfig:
    """Benchmark harness configuration."""
    dim: int = 128
    seq_len: int = 100
    num_vectors: int = 100
    iterations: int = 100
    frechet_iterations: int = 50
    curvature: float = -1.0
    num_levels: int = 3
    seed: int = 0
    vector_norm: float = 0.5
    min_aggregation_speedup: float = 10.0

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Validate benchmark parameters."""
        for name in ["dim", "seq_len", "num_vectors", "iterations",
                     "frechet_iterations", "num_levels"]:
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if not self.curvature < 0:
            raise ValueError(f"Curvature must be negative, got {self.curvature}")
        # Inputs must lie strictly inside the ball of radius 1/sqrt(|c|)
        if not (0 < self.vector_norm < abs(self.curvature) ** -0.5):
            raise ValueError(
                f"Vector norm must be inside the Poincaré ball, got {self.vector_norm}"
            )
        if self.min_aggregation_speedup < 0:
            raise ValueError(
                f"Minimum speedup must be non-negative, got {self.min_aggregation_speedup}"
            )


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: LogLevel = LogLevel.INFO
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_handler: Optional[Path] = None
    console_handler: bool = True

    def __post_init__(self):
        if isinstance(self.level, str):
            self.level = LogLevel(self.level.upper())

    def configure_logging(self) -> None:
        """Configure the logging system."""
        # Clear existing handlers
        logger = logging.getLogger()
        logger.handlers.clear()

        logger.setLevel(getattr(logging, self.level.value))

        formatter = logging.Formatter(self.format)

        if self.console_handler:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

        if self.file_handler:
            file_handler = logging.FileHandler(self.file_handler)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)


@dataclass
class EngineConfig:
    """Main configuration class that combines all sub-configurations."""
    cascade: CascadeConfig = field(default_factory=CascadeConfig)
    benchmark: BenchmarkConfig = field(default_factory=BenchmarkConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self):
        self.validate_all()

    def validate_all(self) -> None:
        """Validate all configuration sections."""
        self.cascade.validate()
        self.benchmark.validate()

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "EngineConfig":
        """Create configuration from dictionary."""
        cascade = CascadeConfig(**config_dict.get("cascade", {}))
        benchmark = BenchmarkConfig(**config_dict.get("benchmark", {}))

        logging_dict = dict(config_dict.get("logging", {}))
        if logging_dict.get("file_handler"):
            logging_dict["file_handler"] = Path(logging_dict["file_handler"])
        logging_config = LoggingConfig(**logging_dict)

        return cls(cascade=cascade, benchmark=benchmark, logging=logging_config)

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "EngineConfig":
        """Load configuration from JSON file."""
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "r") as f:
            config_dict = json.load(f)

        return cls.from_dict(config_dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a JSON-compatible dictionary."""
        config_dict = asdict(self)
        config_dict["cascade"]["levels"] = [asdict(level) for level in self.cascade.levels]
        config_dict["logging"]["level"] = self.logging.level.value
        if self.logging.file_handler is not None:
            config_dict["logging"]["file_handler"] = str(self.logging.file_handler)
        return config_dict

    def save(self, config_path: Union[str, Path]) -> None:
        """Save configuration to JSON file."""
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w") as f:
            json.dump(self.to_dict(), f, indent=2, default=str)


def get_default_config() -> EngineConfig:
    """Get default configuration."""
    return EngineConfig()


def load_config(config_path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """Load configuration from file or return default."""
    if config_path is None:
        default_paths = [
            Path("lorentz_cascade.json"),
            Path("~/.lorentz_cascade/config.json").expanduser(),
        ]

        for path in default_paths:
            if path.exists():
                config_path = path
                break

    if config_path and Path(config_path).exists():
        return EngineConfig.from_file(config_path)
    else:
        return get_default_config()
