"""Purchase lookup and artifact resolution collaborators."""

from .base import ArtifactResolver, PurchaseLookup
from .files import LocalFileResolver
from .memory import InMemoryCatalog

__all__ = ["ArtifactResolver", "PurchaseLookup", "InMemoryCatalog", "LocalFileResolver"]
