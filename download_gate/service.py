"""Process-level composition of the token issuer and redeemer."""

from __future__ import annotations

from typing import Optional

from .catalog.files import LocalFileResolver
from .catalog.memory import InMemoryCatalog
from .config import GateConfig
from .issuer import IssueResult, TokenIssuer
from .redeemer import RedeemResult, TokenRedeemer
from .storage.base import TokenStore
from .storage.memory import InMemoryTokenStore
from .token.signer import BearerTokenSigner


class DownloadService:
    """Owns the store, catalog and signer shared by issuance and redemption."""

    def __init__(
        self,
        *,
        config: GateConfig,
        store: TokenStore,
        catalog: InMemoryCatalog,
        resolver: Optional[LocalFileResolver] = None,
    ) -> None:
        self.config = config
        self.store = store
        self.catalog = catalog
        self.resolver = resolver or LocalFileResolver(catalog, config.files_dir)
        self.signer = BearerTokenSigner(config.secret_key)
        self.issuer = TokenIssuer(
            store=store,
            purchases=catalog,
            signer=self.signer,
            validity=config.validity,
        )
        self.redeemer = TokenRedeemer(store=store, artifacts=self.resolver, signer=self.signer)

    @classmethod
    def from_config(
        cls,
        config: GateConfig,
        *,
        store: Optional[TokenStore] = None,
        catalog: Optional[InMemoryCatalog] = None,
    ) -> "DownloadService":
        if store is None and config.pg_dsn:
            from .storage.postgres import PostgresTokenStore

            store = PostgresTokenStore(config.pg_dsn, command_timeout=config.store_timeout_seconds)
        elif store is None:
            store = InMemoryTokenStore()
        if catalog is None:
            catalog = InMemoryCatalog().seed_demo_data()
        return cls(config=config, store=store, catalog=catalog)

    async def issue(self, purchase_id: str, buyer_id: str) -> IssueResult:
        return await self.issuer.issue(purchase_id, buyer_id)

    async def redeem(self, token: str, origin: Optional[str] = None) -> RedeemResult:
        return await self.redeemer.redeem(token, origin)

    def download_url(self, token: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/api/download/{token}"

    async def close(self) -> None:
        await self.store.close()
