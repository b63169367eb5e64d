from fastapi import APIRouter, Depends, File, Request, UploadFile

from server.dependencies.auth import verify_api_key
from server.models.responses import DeleteResponse, UploadResponse

router = APIRouter(tags=["documents"])


@router.post("/upload")
async def upload_document(
    request: Request,
    file: UploadFile | None = File(default=None),
    _: None = Depends(verify_api_key),
) -> UploadResponse:
    """Ingest a PDF or TXT file into the vector store.

    Args:
        request (Request): FastAPI request (provides app.state.ingestion_service).
        file (UploadFile | None): The multipart "file" field.
        _ (None): Auth dependency result (unused).

    Returns:
        UploadResponse: The generated document id and file name.
    """
    ingestion_service = request.app.state.ingestion_service
    content = await file.read() if file is not None else None
    file_name = file.filename if file is not None else None
    content_type = file.content_type if file is not None else None

    document_id = await ingestion_service.do_ingest(content, file_name, content_type)
    return UploadResponse(
        success=True,
        document_id=document_id,
        file_name=file_name,
        message="Document uploaded and processed successfully",
    )


@router.delete("/documents/{document_id}")
async def delete_document(
    request: Request,
    document_id: str,
    _: None = Depends(verify_api_key),
) -> DeleteResponse:
    """Delete all vectors of a document. Deleting an unknown id succeeds."""
    index_service = request.app.state.index_service
    await index_service.delete_document(document_id)
    return DeleteResponse(
        success=True,
        message="Document deleted successfully",
        document_id=document_id,
    )
