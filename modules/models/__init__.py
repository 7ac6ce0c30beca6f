"""
Models Module
=============

Responsibility:
- User-facing specification constructors.
- Registration of each model's modes, engines, arguments, fit and predict modules.
"""

from . import discrim, linear, neighbors
from .discrim import discrim_mixture
from .linear import linear_reg
from .neighbors import nearest_neighbor

MODEL_CONSTRUCTORS = {
    discrim.MODEL_NAME: discrim_mixture,
    linear.MODEL_NAME: linear_reg,
    neighbors.MODEL_NAME: nearest_neighbor,
}


def register_builtin_models(registry) -> None:
    """Register every built-in model on ``registry``."""
    for module in (discrim, linear, neighbors):
        module.register(registry)


__all__ = ['MODEL_CONSTRUCTORS', 'discrim_mixture', 'linear_reg', 'nearest_neighbor', 'register_builtin_models']
