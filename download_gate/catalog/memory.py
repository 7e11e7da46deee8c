"""In-memory purchase and artifact catalog."""

from __future__ import annotations

from typing import Optional

from ..models import Artifact, Purchase
from ..utils.time import utc_now


class InMemoryCatalog:
    """Read-mostly catalog of completed purchases and the reports they bought."""

    def __init__(self) -> None:
        self.purchases: dict[str, Purchase] = {}
        self.artifacts: dict[str, Artifact] = {}

    def add_purchase(self, purchase: Purchase) -> None:
        self.purchases[purchase.purchase_id] = purchase

    def add_artifact(self, artifact: Artifact) -> None:
        self.artifacts[artifact.artifact_id] = artifact

    async def find_purchase(self, purchase_id: str) -> Optional[Purchase]:
        return self.purchases.get(purchase_id)

    async def find_artifact(self, artifact_id: str) -> Optional[Artifact]:
        return self.artifacts.get(artifact_id)

    def seed_demo_data(self) -> "InMemoryCatalog":
        """Load the demo buyer's inspection report purchase."""
        self.add_artifact(
            Artifact(
                artifact_id="prod1",
                title="123 Main St, Sydney - Property Inspection Report",
                storage_key="reports/123-main-st-sydney-20250507.pdf",
                price=49.99,
            )
        )
        self.add_purchase(
            Purchase(
                purchase_id="order1",
                buyer_id="user1",
                artifact_id="prod1",
                purchased_at=utc_now(),
            )
        )
        return self
