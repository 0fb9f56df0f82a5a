"""
Base class for Lorentz attention engines.

Every engine carries a :class:`LorentzManifold` with its own curvature and
tolerance and implements ``compute(query, keys, values)``.
"""

from abc import ABC, abstractmethod
import logging

import torch

from ..exceptions import ConfigurationError, InvalidArgumentError
from .manifolds import LorentzManifold
from .math_ops import DEFAULT_EPSILON, HyperboloidPoint


logger = logging.getLogger(__name__)


class LorentzModule(ABC):
    """
    Base class for all attention engines on the hyperboloid.

    Provides:
    - Curvature and tolerance validation
    - Manifold management
    - Common geometric helpers

    Args:
        curvature: Negative curvature of the engine's hyperboloid
        epsilon: Numerical tolerance, must be positive
        dtype: Floating point dtype used for all tensors

    Attributes:
        manifold: The LorentzManifold instance
        curvature: Curvature (negative)
    """

    def __init__(self, curvature: float = -1.0, epsilon: float = DEFAULT_EPSILON,
                 dtype: torch.dtype = torch.float64):
        if not curvature < 0:
            raise ConfigurationError(
                "Curvature must be negative",
                {"curvature": curvature}
            )
        if not epsilon > 0:
            raise ConfigurationError(
                "Epsilon must be positive",
                {"epsilon": epsilon}
            )
        if dtype not in (torch.float32, torch.float64):
            raise ConfigurationError(
                "Only float32 and float64 are supported",
                {"dtype": dtype}
            )

        self.manifold = LorentzManifold(curvature=curvature, eps=epsilon)
        self.curvature = self.manifold.curvature
        self.epsilon = epsilon
        self.dtype = dtype

        logger.info(f"Initialized {self.__class__.__name__} with curvature={curvature}")

    def to_vector(self, v, dim: int, name: str = "vector") -> torch.Tensor:
        """Convert an input embedding to a 1-d tensor of length ``dim``."""
        tensor = torch.as_tensor(v, dtype=self.dtype)
        if tensor.dim() != 1 or tensor.shape[0] != dim:
            raise InvalidArgumentError(
                f"Expected a {name} of length {dim}",
                {"shape": tuple(tensor.shape)}
            )
        return tensor

    def to_matrix(self, vectors, dim: int, name: str = "vectors") -> torch.Tensor:
        """Convert a non-empty collection of embeddings to an (n, dim) tensor."""
        if isinstance(vectors, torch.Tensor):
            matrix = vectors.to(self.dtype)
        elif len(vectors) == 0:
            raise InvalidArgumentError(f"Cannot attend over empty {name}")
        else:
            matrix = torch.stack([torch.as_tensor(v, dtype=self.dtype) for v in vectors])
        if matrix.dim() != 2 or matrix.shape[-1] != dim:
            raise InvalidArgumentError(
                f"Expected {name} of shape (n, {dim})",
                {"shape": tuple(matrix.shape)}
            )
        if matrix.shape[0] == 0:
            raise InvalidArgumentError(f"Cannot attend over empty {name}")
        return matrix

    def distance(self, a: HyperboloidPoint, b: HyperboloidPoint) -> torch.Tensor:
        return self.manifold.distance(a, b)

    def exp_map(self, base: HyperboloidPoint, tangent: HyperboloidPoint) -> HyperboloidPoint:
        return self.manifold.exp_map(base, tangent)

    def log_map(self, base: HyperboloidPoint, point: HyperboloidPoint) -> HyperboloidPoint:
        return self.manifold.log_map(base, point)

    def project(self, point: HyperboloidPoint) -> HyperboloidPoint:
        return self.manifold.project(point)

    @abstractmethod
    def compute(self, query, keys, values):
        """
        Attend from ``query`` over ``keys`` and aggregate ``values``.

        Subclasses must implement this method and return an AttentionResult.
        """
        pass

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}("
                f"curvature={self.curvature:.3f}, "
                f"manifold={self.manifold.__class__.__name__})")
