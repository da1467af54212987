"""
Routes API par domaine.
"""

from . import bedrock
from . import health

__all__ = [
    "bedrock",
    "health",
]
