"""
Mathematical operations on the Lorentz (hyperboloid) model.

A point of the hyperboloid with curvature c < 0 is stored as a time-like
coordinate and a space-like vector and satisfies

    -time² + ||space||² = -1/|c|,   time > 0

Every operation here is a pure function of its arguments. Curvatures are given
as negative numbers and only their magnitude k = |c| enters the formulas. The
numerical tolerance ``eps`` is passed explicitly so that engines configured
with different tolerances can coexist.

All functions broadcast: a single point has a 0-dim ``time`` and a 1-d
``space``, a batch of n points has ``time`` of shape (n,) and ``space`` of
shape (n, dim).
"""

import math
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Union

import numpy as np
import torch

from ..exceptions import InvalidArgumentError


DEFAULT_EPSILON = 1e-7
DEFAULT_DTYPE = torch.float64

VectorLike = Union[torch.Tensor, np.ndarray, Sequence[float]]


@dataclass(frozen=True, eq=False)
class HyperboloidPoint:
    """
    Point (or tangent vector) in Minkowski space, split into time and space.

    Attributes:
        time: Time-like coordinate, shape (*batch)
        space: Space-like coordinates, shape (*batch, dim)

    Example:
        >>> p = to_hyperboloid([0.3, -0.2, 0.1], curvature=-1.0)
        >>> p.dim
        3
    """

    time: torch.Tensor
    space: torch.Tensor

    @property
    def dim(self) -> int:
        return self.space.shape[-1]

    @property
    def is_batch(self) -> bool:
        return self.space.dim() > 1

    @property
    def dtype(self) -> torch.dtype:
        return self.space.dtype

    def __bool__(self) -> bool:
        return True

    def __len__(self) -> int:
        if not self.is_batch:
            raise TypeError("A single HyperboloidPoint has no length")
        return self.space.shape[0]

    def __getitem__(self, index) -> "HyperboloidPoint":
        if not self.is_batch:
            raise TypeError("A single HyperboloidPoint cannot be indexed")
        return HyperboloidPoint(self.time[index], self.space[index])

    def __iter__(self) -> Iterator["HyperboloidPoint"]:
        for i in range(len(self)):
            yield self[i]

    def slice_space(self, start: int, end: int) -> "HyperboloidPoint":
        """Keep the full time coordinate and the space range [start, end)."""
        return HyperboloidPoint(self.time, self.space[..., start:end])

    def to_tensor(self) -> torch.Tensor:
        """Time-first ambient coordinates, shape (*batch, dim + 1)."""
        return torch.cat([self.time.unsqueeze(-1), self.space], dim=-1)

    @classmethod
    def from_tensor(cls, x: torch.Tensor) -> "HyperboloidPoint":
        return cls(x[..., 0], x[..., 1:])

    def constraint_residual(self, curvature: float = -1.0) -> torch.Tensor:
        """Deviation of -time² + ||space||² from -1/|c|."""
        k = curvature_magnitude(curvature)
        return minkowski_inner(self, self) + 1.0 / k

    def __repr__(self) -> str:
        shape = tuple(self.space.shape)
        return f"HyperboloidPoint(shape={shape}, dtype={self.dtype})"


def curvature_magnitude(curvature: float) -> float:
    """Return |c|, rejecting zero and non-finite curvatures."""
    k = abs(float(curvature))
    if k == 0.0 or not math.isfinite(k):
        raise InvalidArgumentError(
            "Curvature magnitude must be finite and nonzero",
            {"curvature": curvature}
        )
    return k


def _as_tensor(v: VectorLike, dtype: Optional[torch.dtype] = None) -> torch.Tensor:
    if isinstance(v, torch.Tensor):
        return v.to(dtype) if dtype is not None else v
    if dtype is None:
        dtype = DEFAULT_DTYPE
    return torch.as_tensor(np.asarray(v), dtype=dtype)


def _as_matrix(vectors: Union[VectorLike, Sequence[VectorLike]],
               dtype: Optional[torch.dtype] = None) -> torch.Tensor:
    if isinstance(vectors, (torch.Tensor, np.ndarray)):
        matrix = _as_tensor(vectors, dtype)
    elif len(vectors) == 0:
        return torch.empty(0, 0, dtype=dtype or DEFAULT_DTYPE)
    else:
        matrix = torch.stack([_as_tensor(v, dtype) for v in vectors])
    if matrix.dim() != 2:
        raise InvalidArgumentError(
            "Expected a batch of vectors",
            {"shape": tuple(matrix.shape)}
        )
    return matrix


def stack_points(points: Sequence[HyperboloidPoint]) -> HyperboloidPoint:
    """Stack single points into one batched point."""
    if len(points) == 0:
        raise InvalidArgumentError("Cannot stack an empty list of points")
    return HyperboloidPoint(
        torch.stack([p.time for p in points]),
        torch.stack([p.space for p in points])
    )


def to_hyperboloid(v: VectorLike, curvature: float = -1.0,
                   dtype: Optional[torch.dtype] = None) -> HyperboloidPoint:
    """
    Lift a Euclidean vector onto the hyperboloid.

    The vector becomes the space component and the time component is
    time = sqrt(1/|c| + ||v||²), so the hyperboloid equation holds exactly
    up to floating point.

    Args:
        v: Euclidean vector(s), shape (..., dim)
        curvature: Negative curvature of the target hyperboloid
        dtype: Optional dtype for the result

    Returns:
        Point on the hyperboloid
    """
    k = curvature_magnitude(curvature)
    space = _as_tensor(v, dtype)
    time = torch.sqrt(1.0 / k + torch.sum(space * space, dim=-1))
    return HyperboloidPoint(time, space)


def to_euclidean(point: HyperboloidPoint) -> torch.Tensor:
    """Project to the tangent space at the origin: a copy of the space part."""
    return point.space.clone()


def minkowski_inner(a: HyperboloidPoint, b: HyperboloidPoint) -> torch.Tensor:
    """Minkowski inner product ⟨a, b⟩_L = -a₀b₀ + Σ aᵢbᵢ."""
    return -a.time * b.time + torch.sum(a.space * b.space, dim=-1)


def minkowski_norm(v: HyperboloidPoint) -> torch.Tensor:
    """sqrt(|⟨v, v⟩_L|), the length of a (space-like) tangent vector."""
    return torch.sqrt(torch.abs(minkowski_inner(v, v)))


def distance(a: HyperboloidPoint, b: HyperboloidPoint, curvature: float = -1.0,
             eps: float = DEFAULT_EPSILON) -> torch.Tensor:
    """
    Geodesic distance on the hyperboloid.

    d(a, b) = acosh(-|c| ⟨a, b⟩_L) / sqrt(|c|)

    The acosh argument is clamped to at least 1 + eps; floating-point drift
    would otherwise push it below 1 and produce NaN.

    Args:
        a, b: Points on the hyperboloid (broadcastable)
        curvature: Negative curvature
        eps: Clamp tolerance

    Returns:
        Non-negative distances
    """
    k = curvature_magnitude(curvature)
    arg = torch.clamp(-k * minkowski_inner(a, b), min=1.0 + eps)
    return torch.acosh(arg) / math.sqrt(k)


def centroid(points: Union[HyperboloidPoint, Sequence[HyperboloidPoint]],
             weights: Optional[VectorLike] = None,
             curvature: float = -1.0,
             eps: float = DEFAULT_EPSILON) -> HyperboloidPoint:
    """
    Closed-form weighted centroid (Einstein midpoint) on the hyperboloid.

    The weighted sum S = Σ wᵢ pᵢ is accumulated componentwise in a single pass
    and rescaled back onto the hyperboloid by its Minkowski norm:

        centroid = S / (sqrt(|c|) * sqrt(max(-⟨S, S⟩_L, eps)))

    For |c| = 1 this is S / sqrt(-⟨S, S⟩_L). The cost is O(n·d), against
    O(n·d·iterations) for an iterative Fréchet mean.

    Args:
        points: Batched point of shape (n, dim) or a sequence of points
        weights: Optional non-negative weights, normalised to sum to 1
            (uniform when omitted)
        curvature: Negative curvature
        eps: Floor for the Minkowski norm

    Returns:
        The centroid; a single input point is returned unchanged

    Raises:
        InvalidArgumentError: If no points are given, or the weights do not
            match the points or do not have a positive sum
    """
    if not isinstance(points, HyperboloidPoint):
        if len(points) == 0:
            raise InvalidArgumentError("Cannot compute centroid of empty set")
        if len(points) == 1:
            return points[0]
        points = stack_points(points)
    elif not points.is_batch:
        return points

    n = len(points)
    if n == 0:
        raise InvalidArgumentError("Cannot compute centroid of empty set")
    if n == 1:
        return points[0]

    k = curvature_magnitude(curvature)

    if weights is None:
        w = torch.full((n,), 1.0 / n, dtype=points.dtype, device=points.space.device)
    else:
        w = _as_tensor(weights, points.dtype).reshape(-1)
        if w.shape[0] != n:
            raise InvalidArgumentError(
                "Number of weights must match number of points",
                {"points": n, "weights": w.shape[0]}
            )
        total = torch.sum(w)
        if not total > 0:
            raise InvalidArgumentError(
                "Centroid weights must have a positive sum",
                {"total": float(total)}
            )
        w = w / total

    sum_time = torch.sum(w * points.time)
    sum_space = torch.sum(w.unsqueeze(-1) * points.space, dim=0)

    norm_sq = -sum_time * sum_time + torch.sum(sum_space * sum_space)
    norm_factor = torch.sqrt(torch.clamp(-norm_sq, min=eps)) * math.sqrt(k)

    return HyperboloidPoint(sum_time / norm_factor, sum_space / norm_factor)


def exp_map(base: HyperboloidPoint, tangent: HyperboloidPoint,
            curvature: float = -1.0, eps: float = DEFAULT_EPSILON) -> HyperboloidPoint:
    """
    Exponential map from the tangent space at ``base`` onto the hyperboloid.

    With n = ||v||_L and θ = sqrt(|c|)·n:

        exp_x(v) = cosh(θ) x + sinh(θ) / (sqrt(|c|)·n) v

    which for |c| = 1 is cosh(n) x + sinh(n)/n v.

    Args:
        base: Base point x on the hyperboloid
        tangent: Tangent vector v at x
        curvature: Negative curvature
        eps: Norm below which v counts as zero

    Returns:
        Point on the hyperboloid; ``base`` itself for a zero tangent
    """
    k = curvature_magnitude(curvature)
    sqrt_k = math.sqrt(k)

    norm = minkowski_norm(tangent)
    degenerate = norm < eps
    if bool(torch.all(degenerate)):
        return base

    theta = sqrt_k * norm
    cosh_term = torch.cosh(theta)
    sinh_term = torch.sinh(theta) / (sqrt_k * torch.clamp(norm, min=eps))

    time = cosh_term * base.time + sinh_term * tangent.time
    space = cosh_term.unsqueeze(-1) * base.space + sinh_term.unsqueeze(-1) * tangent.space

    if bool(torch.any(degenerate)):
        time = torch.where(degenerate, base.time.expand_as(time), time)
        space = torch.where(degenerate.unsqueeze(-1), base.space.expand_as(space), space)

    return HyperboloidPoint(time, space)


def log_map(base: HyperboloidPoint, point: HyperboloidPoint,
            curvature: float = -1.0, eps: float = DEFAULT_EPSILON) -> HyperboloidPoint:
    """
    Logarithmic map from the hyperboloid to the tangent space at ``base``.

        diff = y + |c| ⟨x, y⟩_L x
        log_x(y) = d(x, y) · diff / ||diff||_L

    For |c| = 1 the direction is y + ⟨x, y⟩_L x.

    Args:
        base: Base point x
        point: Target point(s) y
        curvature: Negative curvature
        eps: Tolerance below which x and y count as the same point

    Returns:
        Tangent vector(s) at x; zero when y ≈ x
    """
    k = curvature_magnitude(curvature)

    inner = minkowski_inner(base, point)
    dist = distance(base, point, curvature, eps)

    diff = HyperboloidPoint(
        point.time + k * inner * base.time,
        point.space + (k * inner).unsqueeze(-1) * base.space
    )
    diff_norm = minkowski_norm(diff)

    # Coincident points: the clamp in distance() is active or diff vanishes
    degenerate = (diff_norm < eps) | (-k * inner <= 1.0 + eps)

    scale = torch.where(
        degenerate,
        torch.zeros_like(dist),
        dist / torch.clamp(diff_norm, min=eps)
    )

    return HyperboloidPoint(scale * diff.time, scale.unsqueeze(-1) * diff.space)


def parallel_transport(vector: HyperboloidPoint, source: HyperboloidPoint,
                       target: HyperboloidPoint, curvature: float = -1.0,
                       eps: float = DEFAULT_EPSILON) -> HyperboloidPoint:
    """
    Parallel transport of a tangent vector along the geodesic source → target.

        PT(v) = v + coeff · (x + y),
        coeff = |c| ⟨y, v⟩_L / (1 - |c| ⟨x, y⟩_L)

    The result is tangent at the target (⟨PT(v), y⟩_L = 0) and has the same
    Minkowski norm as v. Since -|c|⟨x, y⟩_L >= 1 the denominator is at
    least 2.

    Args:
        vector: Tangent vector at ``source``
        source: Start point x
        target: End point y
        curvature: Negative curvature
        eps: Tolerance below which source and target coincide

    Returns:
        Tangent vector at ``target``; ``vector`` itself when source ≈ target
    """
    k = curvature_magnitude(curvature)

    inner_xy = minkowski_inner(source, target)
    same_point = -k * inner_xy <= 1.0 + eps
    if bool(torch.all(same_point)):
        return vector

    coeff = k * minkowski_inner(target, vector) / (1.0 - k * inner_xy)
    coeff = torch.where(same_point, torch.zeros_like(coeff), coeff)

    return HyperboloidPoint(
        vector.time + coeff * (source.time + target.time),
        vector.space + coeff.unsqueeze(-1) * (source.space + target.space)
    )


def project_to_hyperboloid(point: HyperboloidPoint, curvature: float = -1.0) -> HyperboloidPoint:
    """Recompute the time coordinate from the space part to remove drift."""
    k = curvature_magnitude(curvature)
    time = torch.sqrt(1.0 / k + torch.sum(point.space * point.space, dim=-1))
    return HyperboloidPoint(time, point.space)


def poincare_to_lorentz(x: VectorLike, curvature: float = -1.0,
                        eps: float = DEFAULT_EPSILON,
                        dtype: Optional[torch.dtype] = None) -> HyperboloidPoint:
    """
    Map points of the Poincaré ball of radius 1/sqrt(|c|) onto the hyperboloid.

        time  = (1 + |c|·||x||²) / (sqrt(|c|) (1 - |c|·||x||²))
        space = 2x / (1 - |c|·||x||²)

    Points on or outside the ball boundary are clamped to ||x||² = 1/|c| - eps.
    """
    k = curvature_magnitude(curvature)
    x = _as_tensor(x, dtype)

    norm_sq = torch.sum(x * x, dim=-1)
    norm_sq = torch.clamp(norm_sq, max=1.0 / k - eps)

    denom = 1.0 - k * norm_sq
    time = (1.0 + k * norm_sq) / (math.sqrt(k) * denom)
    space = 2.0 * x / denom.unsqueeze(-1)

    return HyperboloidPoint(time, space)


def lorentz_to_poincare(point: HyperboloidPoint, curvature: float = -1.0) -> torch.Tensor:
    """Inverse of :func:`poincare_to_lorentz`: x = space / (1 + sqrt(|c|)·time)."""
    k = curvature_magnitude(curvature)
    return point.space / (1.0 + math.sqrt(k) * point.time).unsqueeze(-1)


def to_hyperboloid_batch(vectors: Union[VectorLike, Sequence[VectorLike]],
                         curvature: float = -1.0,
                         dtype: Optional[torch.dtype] = None) -> HyperboloidPoint:
    """Lift a batch of Euclidean vectors; each row is lifted independently."""
    return to_hyperboloid(_as_matrix(vectors, dtype), curvature)


def distance_batch(query: HyperboloidPoint,
                   targets: Union[HyperboloidPoint, Sequence[HyperboloidPoint]],
                   curvature: float = -1.0,
                   eps: float = DEFAULT_EPSILON) -> torch.Tensor:
    """Distances from one query point to every target, shape (n,)."""
    if not isinstance(targets, HyperboloidPoint):
        targets = stack_points(targets)
    return distance(query, targets, curvature, eps)
