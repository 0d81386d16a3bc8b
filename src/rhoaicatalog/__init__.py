"""
rhoai-catalog-builder - OLM catalog builder for RHOAI operator upgrade testing
"""

__version__ = "0.1.0"

from .core import CatalogBuilder, CatalogBuilderError

__all__ = ["CatalogBuilder", "CatalogBuilderError"]
