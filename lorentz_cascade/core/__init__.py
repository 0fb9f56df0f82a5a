"""
Core geometry for Lorentz attention.

This module contains:
- Point representation and pure operations on the hyperboloid
- The Poincaré-ball baseline used by the benchmark
- The manifold facade and the base class of attention engines
"""

from .base import LorentzModule
from .manifolds import LorentzManifold
from .math_ops import (
    DEFAULT_EPSILON,
    HyperboloidPoint,
    centroid,
    curvature_magnitude,
    distance,
    distance_batch,
    exp_map,
    log_map,
    lorentz_to_poincare,
    minkowski_inner,
    minkowski_norm,
    parallel_transport,
    poincare_to_lorentz,
    project_to_hyperboloid,
    stack_points,
    to_euclidean,
    to_hyperboloid,
    to_hyperboloid_batch,
)
from .poincare import frechet_mean, mobius_add, poincare_distance

__all__ = [
    "LorentzModule",
    "LorentzManifold",
    "DEFAULT_EPSILON",
    "HyperboloidPoint",
    "centroid",
    "curvature_magnitude",
    "distance",
    "distance_batch",
    "exp_map",
    "log_map",
    "lorentz_to_poincare",
    "minkowski_inner",
    "minkowski_norm",
    "parallel_transport",
    "poincare_to_lorentz",
    "project_to_hyperboloid",
    "stack_points",
    "to_euclidean",
    "to_hyperboloid",
    "to_hyperboloid_batch",
    "frechet_mean",
    "mobius_add",
    "poincare_distance",
]
