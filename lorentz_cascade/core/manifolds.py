"""
Lorentz manifold facade.

``LorentzManifold`` binds a curvature and a numerical tolerance to the pure
functions of :mod:`lorentz_cascade.core.math_ops`, so attention engines can
carry their geometry around as a single object. Several manifolds with
different curvatures or tolerances can coexist; none of them holds mutable
state.
"""

import math
from typing import Optional, Sequence, Union

import torch

from .math_ops import (
    DEFAULT_DTYPE,
    DEFAULT_EPSILON,
    HyperboloidPoint,
    VectorLike,
    centroid,
    curvature_magnitude,
    distance,
    distance_batch,
    exp_map,
    log_map,
    lorentz_to_poincare,
    minkowski_inner,
    parallel_transport,
    poincare_to_lorentz,
    project_to_hyperboloid,
    to_euclidean,
    to_hyperboloid,
    to_hyperboloid_batch,
)


class LorentzManifold:
    """
    Hyperboloid model of hyperbolic space with a fixed curvature.

    Points satisfy -x₀² + x₁² + ... + xₙ² = -1/|c| with x₀ > 0.

    Args:
        curvature: Negative curvature
        eps: Numerical tolerance used by every operation

    Example:
        >>> manifold = LorentzManifold(curvature=-0.5)
        >>> p = manifold.to_hyperboloid([0.1, 0.2])
        >>> manifold.check_point(p)
        True
    """

    def __init__(self, curvature: float = -1.0, eps: float = DEFAULT_EPSILON):
        self.k = curvature_magnitude(curvature)
        self.curvature = -self.k
        self.eps = eps

    @property
    def radius(self) -> float:
        """Radius 1/sqrt(|c|) of the matching Poincaré ball."""
        return 1.0 / math.sqrt(self.k)

    def to_hyperboloid(self, v: VectorLike, dtype: Optional[torch.dtype] = None) -> HyperboloidPoint:
        return to_hyperboloid(v, self.curvature, dtype)

    def to_hyperboloid_batch(self, vectors: Sequence[VectorLike],
                             dtype: Optional[torch.dtype] = None) -> HyperboloidPoint:
        return to_hyperboloid_batch(vectors, self.curvature, dtype)

    def to_euclidean(self, point: HyperboloidPoint) -> torch.Tensor:
        return to_euclidean(point)

    def inner(self, a: HyperboloidPoint, b: HyperboloidPoint) -> torch.Tensor:
        return minkowski_inner(a, b)

    def distance(self, a: HyperboloidPoint, b: HyperboloidPoint) -> torch.Tensor:
        return distance(a, b, self.curvature, self.eps)

    def distance_batch(self, query: HyperboloidPoint,
                       targets: Union[HyperboloidPoint, Sequence[HyperboloidPoint]]) -> torch.Tensor:
        return distance_batch(query, targets, self.curvature, self.eps)

    def centroid(self, points: Union[HyperboloidPoint, Sequence[HyperboloidPoint]],
                 weights: Optional[VectorLike] = None) -> HyperboloidPoint:
        return centroid(points, weights, self.curvature, self.eps)

    def exp_map(self, base: HyperboloidPoint, tangent: HyperboloidPoint) -> HyperboloidPoint:
        return exp_map(base, tangent, self.curvature, self.eps)

    def log_map(self, base: HyperboloidPoint, point: HyperboloidPoint) -> HyperboloidPoint:
        return log_map(base, point, self.curvature, self.eps)

    def parallel_transport(self, vector: HyperboloidPoint, source: HyperboloidPoint,
                           target: HyperboloidPoint) -> HyperboloidPoint:
        return parallel_transport(vector, source, target, self.curvature, self.eps)

    def project(self, point: HyperboloidPoint) -> HyperboloidPoint:
        return project_to_hyperboloid(point, self.curvature)

    def to_poincare(self, point: HyperboloidPoint) -> torch.Tensor:
        return lorentz_to_poincare(point, self.curvature)

    def from_poincare(self, x: VectorLike, dtype: Optional[torch.dtype] = None) -> HyperboloidPoint:
        return poincare_to_lorentz(x, self.curvature, self.eps, dtype)

    def geodesic(self, a: HyperboloidPoint, b: HyperboloidPoint, t: float) -> HyperboloidPoint:
        """
        Point at parameter t on the geodesic from a to b.

        Args:
            a, b: End points
            t: Geodesic parameter (0 gives a, 1 gives b)

        Returns:
            exp_a(t · log_a(b))
        """
        v = self.log_map(a, b)
        scaled = HyperboloidPoint(t * v.time, t * v.space)
        return self.exp_map(a, scaled)

    def origin(self, dim: int, dtype: Optional[torch.dtype] = None) -> HyperboloidPoint:
        """The point (1/sqrt(|c|), 0, ..., 0)."""
        dtype = dtype or DEFAULT_DTYPE
        return HyperboloidPoint(
            torch.tensor(self.radius, dtype=dtype),
            torch.zeros(dim, dtype=dtype)
        )

    def random_point(self, n: int, dim: int, scale: float = 0.5,
                     generator: Optional[torch.Generator] = None,
                     dtype: Optional[torch.dtype] = None) -> HyperboloidPoint:
        """
        Random batch of n points: Gaussian space parts lifted onto the hyperboloid.

        Args:
            n: Number of points
            dim: Space dimension
            scale: Standard deviation of the space components
            generator: Optional torch generator for reproducibility
            dtype: Data type for tensors

        Returns:
            Batched point of shape (n, dim)
        """
        dtype = dtype or DEFAULT_DTYPE
        space = torch.randn(n, dim, generator=generator, dtype=dtype) * scale
        return self.to_hyperboloid(space)

    def check_point(self, point: HyperboloidPoint, atol: float = 1e-5) -> bool:
        """True when every point lies on the upper sheet within ``atol``."""
        residual = point.constraint_residual(self.curvature)
        on_sheet = torch.all(torch.abs(residual) <= atol)
        return bool(on_sheet and torch.all(point.time > 0))

    def __repr__(self) -> str:
        return f"LorentzManifold(curvature={self.curvature}, eps={self.eps})"
