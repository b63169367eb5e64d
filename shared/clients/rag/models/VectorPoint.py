"""VectorPoint model: one chunk vector as it is written to the vector store."""

from pydantic import BaseModel, ConfigDict, Field


class VectorPointMetadata(BaseModel):
    """Metadata stored alongside each chunk vector.

    The field aliases are the keys actually stored in the index, so that
    filters such as ``{"documentId": {"$eq": ...}}`` keep working.

    Attributes:
        document_id:  Identifier shared by all chunks of one uploaded document.
        file_name:    Original name of the uploaded file.
        text:         Raw text of this chunk.
        chunk_index:  Zero-based position of this chunk within the document.
        uploaded_at:  ISO-8601 upload timestamp, identical for all chunks of a document.
    """

    model_config = ConfigDict(populate_by_name=True)

    document_id: str = Field(alias="documentId")
    file_name: str = Field(alias="fileName")
    text: str
    chunk_index: int = Field(alias="chunkIndex")
    uploaded_at: str = Field(alias="uploadedAt")


class VectorPoint(BaseModel):
    """A record ready for upsert.

    Attributes:
        id:       Deterministic key "{documentId}-chunk-{index}".
        values:   The embedding vector.
        metadata: Core chunk metadata.
        extra:    Sanitized source metadata (primitives and string lists only).
    """

    id: str
    values: list[float]
    metadata: VectorPointMetadata
    extra: dict[str, str | int | float | bool | list[str]] = {}

    def to_record(self) -> dict:
        """Flatten into the {id, values, metadata} shape expected by the store.

        Core metadata keys take precedence over same-named source metadata.
        """
        metadata = {**self.extra, **self.metadata.model_dump(by_alias=True)}
        return {"id": self.id, "values": self.values, "metadata": metadata}
