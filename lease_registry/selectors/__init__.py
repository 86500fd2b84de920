"""Selectors for the lease registry (read side)."""

from lease_registry.selectors.property_selector import PropertySelector

__all__ = [
    "PropertySelector",
]
