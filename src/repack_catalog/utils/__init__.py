"""
Utility modules.

Provides request pacing for the listing site and the metadata service.
"""

from repack_catalog.utils.pacing import Pacer, PacingConfig

__all__ = [
    "Pacer",
    "PacingConfig",
]
