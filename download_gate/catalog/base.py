"""Collaborator interfaces consumed by the issuer and redeemer."""

from __future__ import annotations

from typing import Optional, Protocol

from ..models import ArtifactRef, Purchase


class PurchaseLookup(Protocol):
    async def find_purchase(self, purchase_id: str) -> Optional[Purchase]:
        ...


class ArtifactResolver(Protocol):
    async def resolve_artifact(self, artifact_id: str) -> Optional[ArtifactRef]:
        ...
