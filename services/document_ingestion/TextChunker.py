"""Fixed-window text chunking with overlap."""

from pydantic import BaseModel

CHUNK_SIZE = 1000       # characters per text chunk
CHUNK_OVERLAP = 200     # characters shared by consecutive chunks


class TextSegment(BaseModel):
    """A contiguous piece of extracted document text (a PDF page, or a whole TXT file)."""

    text: str
    metadata: dict = {}


class Chunk(BaseModel):
    """A bounded slice of a document's text, the unit of embedding and retrieval."""

    document_id: str
    index: int
    text: str
    metadata: dict = {}


class TextChunker:
    """Splits text into windows of at most chunk_size characters.

    Consecutive windows of the same segment share exactly chunk_overlap
    characters. A text of length L > chunk_size yields
    ceil((L - overlap) / (chunk_size - overlap)) chunks.
    """

    def __init__(self, chunk_size: int = CHUNK_SIZE, chunk_overlap: int = CHUNK_OVERLAP) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}.")
        if chunk_overlap < 0 or chunk_overlap >= chunk_size:
            raise ValueError(
                f"chunk_overlap must be between 0 and chunk_size - 1, got {chunk_overlap} for chunk_size {chunk_size}."
            )
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def split_text(self, text: str) -> list[str]:
        """Split a single text into overlapping windows.

        Args:
            text (str): The text to split.

        Returns:
            list[str]: Ordered windows; empty for empty text.
        """
        if not text:
            return []
        chunks: list[str] = []
        start = 0
        while start < len(text):
            end = min(start + self.chunk_size, len(text))
            chunks.append(text[start:end])
            if end >= len(text):
                break
            start = end - self.chunk_overlap
        return chunks

    def split_segments(self, document_id: str, segments: list[TextSegment]) -> list[Chunk]:
        """Chunk every segment of a document, numbering chunks across segments.

        Args:
            document_id (str): The parent document identifier.
            segments (list[TextSegment]): Segments in document order.

        Returns:
            list[Chunk]: Chunks in document order; each carries its segment's metadata.
        """
        chunks: list[Chunk] = []
        for segment in segments:
            for text in self.split_text(segment.text):
                chunks.append(Chunk(
                    document_id=document_id,
                    index=len(chunks),
                    text=text,
                    metadata=dict(segment.metadata),
                ))
        return chunks
