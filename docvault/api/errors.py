"""JSON rendering for DocumentVaultError subclasses."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from docvault.exceptions import DocumentVaultError

logger = logging.getLogger(__name__)


async def document_vault_error_handler(request: Request, exc: DocumentVaultError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details,
            "request_id": getattr(request.state, "request_id", None),
        },
    )


def setup_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DocumentVaultError, document_vault_error_handler)
