"""FastAPI transport for download token issuance and redemption."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, StrictStr, ValidationError

from .config import GateConfig
from .errors import ErrorKind
from .logs import configure_logging
from .service import DownloadService
from .token.signer import token_fingerprint

logger = structlog.get_logger()

DOWNLOAD_PREFIX = "/api/download/"

ERROR_RESPONSES: dict[ErrorKind, tuple[int, str]] = {
    ErrorKind.MALFORMED: (400, "Invalid download token"),
    ErrorKind.BAD_SIGNATURE: (401, "Invalid download token"),
    ErrorKind.OWNERSHIP_MISMATCH: (403, "Order does not belong to this user"),
    ErrorKind.NOT_FOUND: (404, "Download not found"),
    ErrorKind.ALREADY_USED: (409, "Download link has already been used"),
    ErrorKind.EXPIRED: (410, "Download link has expired"),
}


class DownloadTokenRequest(BaseModel):
    orderId: Optional[StrictStr] = None
    userId: Optional[StrictStr] = None


async def read_token_request(request: Request) -> Optional[DownloadTokenRequest]:
    """Parse the issue request body; None when it is absent or not usable."""
    try:
        payload = await request.json()
    except ValueError:
        return None
    try:
        return DownloadTokenRequest.model_validate(payload)
    except ValidationError:
        return None


def error_response(reason: str) -> JSONResponse:
    status, message = ERROR_RESPONSES[ErrorKind(reason)]
    return JSONResponse(status_code=status, content={"error": message, "reason": ErrorKind(reason).value})


def internal_error() -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


def create_app(service: DownloadService) -> FastAPI:
    """Build the HTTP app around an already constructed service."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        ensure_schema = getattr(service.store, "ensure_schema", None)
        if callable(ensure_schema):
            await ensure_schema()
        logger.info("download_gate_started", base_url=service.config.base_url)
        yield
        await service.close()
        logger.info("download_gate_stopped")

    app = FastAPI(title="Download Gate", lifespan=lifespan)
    app.state.service = service

    @app.middleware("http")
    async def track_download_attempts(request: Request, call_next):
        path = request.url.path
        if path.startswith(DOWNLOAD_PREFIX):
            logger.info(
                "download_attempt",
                token=token_fingerprint(path[len(DOWNLOAD_PREFIX):]),
                client=request.client.host if request.client else None,
            )
        return await call_next(request)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    @app.post("/api/download-tokens")
    async def create_download_token(request: Request) -> Response:
        """Issue a download token for a purchased report and return its URL."""
        body = await read_token_request(request)
        if body is None or not body.orderId or not body.userId:
            return JSONResponse(status_code=400, content={"error": "Missing required parameters"})

        try:
            result = await service.issue(body.orderId, body.userId)
        except Exception:
            logger.exception("download_token_issue_failed", order_id=body.orderId)
            return internal_error()

        if not result.ok:
            return error_response(result.reason)
        assert result.token is not None
        return JSONResponse(status_code=200, content={"downloadUrl": service.download_url(result.token)})

    @app.get("/api/download/{token}")
    async def download_report(token: str, request: Request) -> Response:
        """Redeem a download token and send the report."""
        origin = request.client.host if request.client else None
        try:
            result = await service.redeem(token, origin)
        except Exception:
            logger.exception("download_failed", token=token_fingerprint(token))
            return internal_error()

        if not result.ok:
            return error_response(result.reason)

        assert result.artifact is not None
        artifact = result.artifact
        # File streaming is not wired up; the body stands in for the stored PDF.
        return Response(
            f"Mock PDF content for {artifact.title}",
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
        )

    return app


def main() -> None:
    config = GateConfig.from_env()
    configure_logging(config.log_level)
    app = create_app(DownloadService.from_config(config))
    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    main()
