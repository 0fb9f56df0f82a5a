"""
Poincaré-ball operations used as the iterative comparison baseline.

The benchmark harness measures the closed-form Lorentz path against the
classic ball-model pipeline: Möbius arithmetic, exponential/logarithmic maps
and an iterative Fréchet mean. Curvatures follow the package convention
(negative numbers, only |c| is used).
"""

import math
from typing import Optional

import torch

from ..exceptions import InvalidArgumentError
from .math_ops import curvature_magnitude


BALL_EPSILON = 1e-15


def mobius_add(x: torch.Tensor, y: torch.Tensor, curvature: float = -1.0,
               eps: float = BALL_EPSILON) -> torch.Tensor:
    """
    Möbius addition in the Poincaré ball.

    x ⊕ y = ((1 + 2k⟨x,y⟩ + k||y||²)x + (1 - k||x||²)y) / (1 + 2k⟨x,y⟩ + k²||x||²||y||²)

    Args:
        x, y: Points in the ball (broadcastable)
        curvature: Negative curvature
        eps: Small constant added to the denominator

    Returns:
        x ⊕ y
    """
    k = curvature_magnitude(curvature)
    dot_xy = torch.sum(x * y, dim=-1, keepdim=True)
    norm_x_sq = torch.sum(x * x, dim=-1, keepdim=True)
    norm_y_sq = torch.sum(y * y, dim=-1, keepdim=True)

    numerator = (1.0 + 2.0 * k * dot_xy + k * norm_y_sq) * x + (1.0 - k * norm_x_sq) * y
    denominator = 1.0 + 2.0 * k * dot_xy + k * k * norm_x_sq * norm_y_sq

    return numerator / (denominator + eps)


def project_to_poincare_ball(x: torch.Tensor, curvature: float = -1.0,
                             eps: float = BALL_EPSILON) -> torch.Tensor:
    """Pull points with norm >= (1 - 1e-3)/sqrt(k) back inside the ball."""
    k = curvature_magnitude(curvature)
    max_norm = (1.0 - 1e-3) / math.sqrt(k)

    norms = torch.norm(x, dim=-1, keepdim=True)
    return torch.where(norms >= max_norm, x * (max_norm - eps) / (norms + eps), x)


def _conformal_factor(x: torch.Tensor, k: float, eps: float) -> torch.Tensor:
    return 2.0 / (1.0 - k * torch.sum(x * x, dim=-1, keepdim=True) + eps)


def poincare_distance(x: torch.Tensor, y: torch.Tensor, curvature: float = -1.0,
                      eps: float = BALL_EPSILON) -> torch.Tensor:
    """
    Geodesic distance in the Poincaré ball.

    d(x, y) = (2/sqrt(k)) atanh(sqrt(k) ||(-x) ⊕ y||)
    """
    k = curvature_magnitude(curvature)
    sqrt_k = math.sqrt(k)

    diff_norm = torch.norm(mobius_add(-x, y, curvature, eps), dim=-1)
    diff_norm = torch.clamp(diff_norm * sqrt_k, min=0.0, max=1.0 - 1e-7)

    return (2.0 / sqrt_k) * torch.atanh(diff_norm)


def poincare_exp_map(x: torch.Tensor, v: torch.Tensor, curvature: float = -1.0,
                     eps: float = BALL_EPSILON) -> torch.Tensor:
    """
    Exponential map at x in the Poincaré ball.

    exp_x(v) = x ⊕ (tanh(sqrt(k) λ_x ||v|| / 2) v / (sqrt(k) ||v||))
    """
    k = curvature_magnitude(curvature)
    sqrt_k = math.sqrt(k)

    v_norm = torch.norm(v, dim=-1, keepdim=True)
    lambda_x = _conformal_factor(x, k, eps)

    factor = torch.tanh(sqrt_k * lambda_x * v_norm / 2.0) / (sqrt_k * v_norm + eps)
    factor = torch.where(v_norm < eps, torch.zeros_like(factor), factor)

    return project_to_poincare_ball(mobius_add(x, factor * v, curvature, eps), curvature, eps)


def poincare_log_map(x: torch.Tensor, y: torch.Tensor, curvature: float = -1.0,
                     eps: float = BALL_EPSILON) -> torch.Tensor:
    """
    Logarithmic map at x in the Poincaré ball.

    log_x(y) = (2 / (sqrt(k) λ_x)) atanh(sqrt(k) ||u||) u / ||u||,  u = (-x) ⊕ y
    """
    k = curvature_magnitude(curvature)
    sqrt_k = math.sqrt(k)

    u = mobius_add(-x, y, curvature, eps)
    u_norm = torch.norm(u, dim=-1, keepdim=True)
    lambda_x = _conformal_factor(x, k, eps)

    scaled = torch.clamp(sqrt_k * u_norm, max=1.0 - 1e-7)
    factor = (2.0 / (sqrt_k * lambda_x)) * torch.atanh(scaled) / (u_norm + eps)
    factor = torch.where(u_norm < eps, torch.zeros_like(factor), factor)

    return factor * u


def frechet_mean(points: torch.Tensor, weights: Optional[torch.Tensor] = None,
                 curvature: float = -1.0, iterations: int = 50,
                 tol: Optional[float] = None, eps: float = BALL_EPSILON) -> torch.Tensor:
    """
    Weighted Fréchet mean of points in the Poincaré ball.

    Iterative Riemannian gradient descent: map every point to the tangent
    space at the current estimate, average the tangent vectors with the
    weights, and map the average back. The loop runs exactly ``iterations``
    times unless ``tol`` is given, in which case it stops once the estimate
    moves less than ``tol``.

    Args:
        points: Tensor of shape (n_points, dim)
        weights: Optional weights, shape (n_points,)
        curvature: Negative curvature
        iterations: Number of refinement steps
        tol: Optional convergence tolerance
        eps: Small constant for numerical stability

    Returns:
        Mean point, shape (dim,)
    """
    if points.dim() != 2 or points.shape[0] == 0:
        raise InvalidArgumentError(
            "Fréchet mean needs a non-empty (n, dim) tensor",
            {"shape": tuple(points.shape)}
        )
    if iterations < 1:
        raise InvalidArgumentError("Iterations must be positive", {"iterations": iterations})

    n_points = points.shape[0]
    if weights is None:
        weights = torch.ones(n_points, dtype=points.dtype, device=points.device)
    weights = weights / torch.sum(weights)

    # Start from the projected Euclidean average
    mean = project_to_poincare_ball(
        torch.sum(points * weights.unsqueeze(-1), dim=0), curvature, eps
    )

    for _ in range(iterations):
        tangents = poincare_log_map(mean.unsqueeze(0), points, curvature, eps)
        step = torch.sum(tangents * weights.unsqueeze(-1), dim=0)
        new_mean = poincare_exp_map(mean, step, curvature, eps)

        if tol is not None and float(poincare_distance(mean, new_mean, curvature, eps)) < tol:
            mean = new_mean
            break
        mean = new_mean

    return mean
