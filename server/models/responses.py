from pydantic import BaseModel, ConfigDict, Field


class UploadResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    document_id: str = Field(alias="documentId")
    file_name: str = Field(alias="fileName")
    message: str


class SourceItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(alias="fileName")
    score: float | None
    text: str


class QueryResponse(BaseModel):
    answer: str
    sources: list[SourceItem]
    conversational: bool = False


class DeleteResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    document_id: str = Field(alias="documentId")


class HealthResponse(BaseModel):
    status: str
    service: str
