"""Issue a download token for the demo purchase and redeem it twice."""

from __future__ import annotations

import asyncio
import os

from download_gate.config import GateConfig
from download_gate.logs import configure_logging
from download_gate.service import DownloadService


async def main() -> None:
    config = GateConfig(secret_key=os.getenv("DOWNLOAD_GATE_SECRET", "example-only-secret"))
    configure_logging(config.log_level)
    service = DownloadService.from_config(config)
    try:
        issued = await service.issue("order1", "user1")
        print("download url:", service.download_url(issued.token))

        first = await service.redeem(issued.token, "127.0.0.1")
        print("first redemption:", first.reason, first.artifact)

        second = await service.redeem(issued.token, "127.0.0.1")
        print("second redemption:", second.reason)

        foreign = await service.issue("order1", "user2")
        print("foreign buyer:", foreign.reason)
    finally:
        await service.close()


if __name__ == "__main__":
    asyncio.run(main())
