"""
Attention layers on the hyperboloid.

- Single-level multi-head attention (distance and tangent-space variants)
- Self- and cross-attention wrappers
- Multi-curvature cascades and the adaptive depth selector
"""

from .attention import (
    AttentionMetrics,
    AttentionResult,
    LorentzAttention,
    LorentzCrossAttention,
    LorentzSelfAttention,
    stable_softmax,
)
from .cascade import (
    AdaptiveCascadeAttention,
    LorentzCascadeAttention,
    harmonic_residual_weight,
)

__all__ = [
    "AttentionMetrics",
    "AttentionResult",
    "LorentzAttention",
    "LorentzCrossAttention",
    "LorentzSelfAttention",
    "stable_softmax",
    "AdaptiveCascadeAttention",
    "LorentzCascadeAttention",
    "harmonic_residual_weight",
]
