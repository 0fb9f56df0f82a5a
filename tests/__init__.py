"""
lorentz_cascade Test Suite

This package contains unit tests for all components of lorentz_cascade.
The tests are organized by module and include:

- Geometry identities of the hyperboloid primitives
- Attention, cascade and adaptive selector behaviour
- Configuration, factories and exception handling
- Benchmark harness and plotting smoke tests
"""

import sys
import os
import tempfile
import shutil
from pathlib import Path

import torch

# Add the parent directory to the path for importing lorentz_cascade
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))


class TestFixtures:
    """Common test fixtures and utilities."""

    @staticmethod
    def create_temp_dir() -> Path:
        """Create a temporary directory for test files."""
        return Path(tempfile.mkdtemp())

    @staticmethod
    def cleanup_temp_dir(temp_dir: Path) -> None:
        """Clean up temporary directory."""
        if temp_dir.exists():
            shutil.rmtree(temp_dir)

    @staticmethod
    def random_vectors(n: int, dim: int, scale: float = 0.3, seed: int = 0) -> torch.Tensor:
        """Seeded Gaussian vectors of shape (n, dim)."""
        generator = torch.Generator().manual_seed(seed)
        return torch.randn(n, dim, generator=generator, dtype=torch.float64) * scale

    @staticmethod
    def create_config_dict() -> dict:
        """Small engine configuration as a plain dictionary."""
        return {
            'cascade': {
                'dim': 8,
                'levels': [
                    {'curvature': -0.2, 'num_heads': 1, 'dropout': 0.0, 'temperature': 1.0},
                    {'curvature': -1.0, 'num_heads': 2, 'dropout': 0.1, 'temperature': 0.5},
                ],
                'use_tangent_mode': False,
            },
            'benchmark': {
                'dim': 8,
                'seq_len': 5,
                'num_vectors': 5,
                'iterations': 3,
            },
            'logging': {
                'level': 'DEBUG',
            },
        }


# Test constants
TEST_DIM = 8
TEST_CURVATURES = [-0.1, -0.5, -1.0, -2.0]
