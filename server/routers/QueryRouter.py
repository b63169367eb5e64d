from fastapi import APIRouter, Depends, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import QueryRequest
from server.models.responses import QueryResponse

router = APIRouter(prefix="/query", tags=["query"])


@router.post("")
async def query_documents(
    request: Request,
    body: QueryRequest,
    _: None = Depends(verify_api_key),
) -> QueryResponse:
    """Answer a question from the uploaded documents.

    Args:
        request (Request): FastAPI request (provides app.state.query_service).
        body (QueryRequest): JSON body with query, optional topK and similarityThreshold.
        _ (None): Auth dependency result (unused).

    Returns:
        QueryResponse: The answer with its sources, or a conversational reply.
    """
    query_service = request.app.state.query_service
    return await query_service.answer(body)
