from fastapi import APIRouter

from docvault.api.v1 import audit, documents, health

api_router = APIRouter()

api_router.include_router(health.router, prefix="/v1", tags=["health"])
api_router.include_router(documents.router, prefix="/v1/documents", tags=["documents"])
api_router.include_router(audit.router, prefix="/v1/audit", tags=["audit"])
