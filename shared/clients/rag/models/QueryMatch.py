from pydantic import BaseModel


class QueryMatch(BaseModel):
    """A single similarity search hit with its denormalised chunk metadata.

    Attributes:
        id:          Vector id ("{documentId}-chunk-{index}").
        score:       Provider-defined similarity, higher is closer. May be missing.
        text:        Chunk text, "" when absent from the metadata.
        file_name:   Source file name, "unknown" when absent.
        document_id: Parent document id, "" when absent.
        chunk_index: Chunk position, 0 when absent.
    """

    id: str
    score: float | None = None
    text: str = ""
    file_name: str = "unknown"
    document_id: str = ""
    chunk_index: int = 0
