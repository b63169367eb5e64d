from fastapi import APIRouter, Depends, Request

from server.dependencies.auth import verify_api_key
from server.models.responses import HealthResponse
from shared.clients.rag.models.IndexStats import IndexStats

router = APIRouter(tags=["index"])


@router.get("/stats")
async def get_stats(
    request: Request,
    _: None = Depends(verify_api_key),
) -> IndexStats:
    """Return the vector store statistics (record count, dimension, fullness)."""
    index_service = request.app.state.index_service
    return await index_service.get_stats()


@router.get("/health")
async def health(_: None = Depends(verify_api_key)) -> HealthResponse:
    return HealthResponse(status="ok", service="RAG API")
