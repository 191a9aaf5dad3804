"""Subscriber layer — local models and collections linked to canonical records."""

from tandem.models.collection import Collection
from tandem.models.model import CanonicalLink, Model

__all__ = [
    "CanonicalLink",
    "Collection",
    "Model",
]
