"""Document ingestion service.

Validates an uploaded file, extracts its text, splits it into chunks,
embeds every chunk via the Embed client and upserts the resulting vectors
into the vector store with a flat metadata payload.
"""

import asyncio
import os
import time
import uuid
from datetime import datetime, timezone
from typing import Any

from services.document_ingestion.DocumentLoader import DocumentLoader, SUPPORTED_MIME_TYPES
from services.document_ingestion.TextChunker import Chunk, TextChunker, CHUNK_SIZE, CHUNK_OVERLAP
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.VectorPoint import VectorPoint, VectorPointMetadata
from shared.helper.HelperConfig import HelperConfig
from shared.models.errors import ValidationError

UPLOAD_MAX_BYTES = 10 * 1024 * 1024  # 10 MiB
UPSERT_BATCH_SIZE = 100              # max records per upsert call
EMBED_CONCURRENCY = 10               # max parallel embedding calls per document


def sanitize_metadata(metadata: dict[str, Any]) -> dict[str, str | int | float | bool | list[str]]:
    """Keep only metadata values a vector store can index.

    Strings, numbers, booleans and lists made only of strings survive; None,
    nested objects and mixed lists are dropped as a whole.

    Args:
        metadata (dict[str, Any]): Source metadata of a chunk.

    Returns:
        dict: The filtered metadata.
    """
    sanitized: dict[str, str | int | float | bool | list[str]] = {}
    for key, value in (metadata or {}).items():
        if value is None:
            continue
        if isinstance(value, (str, int, float, bool)):
            sanitized[key] = value
        elif isinstance(value, list) and all(isinstance(item, str) for item in value):
            sanitized[key] = list(value)
    return sanitized


def make_point_id(document_id: str, chunk_index: int) -> str:
    """Build the deterministic record key of a chunk.

    Args:
        document_id (str): The parent document identifier.
        chunk_index (int): Zero-based chunk index within the document.

    Returns:
        str: "{document_id}-chunk-{chunk_index}"
    """
    return f"{document_id}-chunk-{chunk_index}"


class IngestionService:
    """Orchestrates loader -> chunker -> embed client -> vector store for uploads."""

    def __init__(
        self,
        helper_config: HelperConfig,
        rag_client: RAGClientInterface,
        embed_client: EmbedClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._rag_client = rag_client
        self._embed_client = embed_client

        self.upload_dir = helper_config.get_string_val(
            "UPLOAD_DIR", default=os.path.join(helper_config.get_root_dir(), "uploads")
        )
        self.max_bytes = int(helper_config.get_number_val("UPLOAD_MAX_BYTES", default=UPLOAD_MAX_BYTES))
        self.batch_size = int(helper_config.get_number_val("UPSERT_BATCH_SIZE", default=UPSERT_BATCH_SIZE))
        self.embed_concurrency = int(helper_config.get_number_val("EMBED_CONCURRENCY", default=EMBED_CONCURRENCY))
        self._chunker = TextChunker(
            chunk_size=int(helper_config.get_number_val("CHUNK_SIZE", default=CHUNK_SIZE)),
            chunk_overlap=int(helper_config.get_number_val("CHUNK_OVERLAP", default=CHUNK_OVERLAP)),
        )
        self._loader = DocumentLoader(logger=self.logging)

    ##########################################
    ############### VALIDATION ###############
    ##########################################

    def validate_upload(self, content: bytes | None, file_name: str | None, content_type: str | None) -> None:
        """Reject missing, unsupported or oversized uploads.

        Raises:
            ValidationError: On any violation.
        """
        if content is None or not file_name:
            raise ValidationError("No file provided")
        if content_type not in SUPPORTED_MIME_TYPES:
            raise ValidationError("Invalid file type. Only PDF and TXT files are allowed.")
        if len(content) > self.max_bytes:
            raise ValidationError(f"File size exceeds {self.max_bytes // (1024 * 1024)}MB limit")

    ##########################################
    ################ INGEST ##################
    ##########################################

    async def do_ingest(self, content: bytes | None, file_name: str | None, content_type: str | None) -> str:
        """Process one uploaded file end to end.

        Args:
            content (bytes | None): Raw file bytes.
            file_name (str | None): Name declared by the uploader.
            content_type (str | None): MIME type declared by the uploader.

        Returns:
            str: The new document identifier.

        Raises:
            ValidationError: If the upload is invalid or contains no text.
            UpstreamError: If embedding or upsert fails.
        """
        self.validate_upload(content, file_name, content_type)

        document_id = str(uuid.uuid4())
        uploaded_at = datetime.now(timezone.utc).isoformat()
        file_path = self._get_upload_path(file_name)
        self.logging.info("Processing '%s' (%d bytes) as document %s", file_name, len(content), document_id)

        try:
            await asyncio.to_thread(self._write_upload, file_path, content)
            segments = await asyncio.to_thread(self._loader.load, file_path, content_type)
            chunks = self._chunker.split_segments(document_id, segments)
            if not any(chunk.text.strip() for chunk in chunks):
                raise ValidationError("No text content could be extracted from the file.")
            self.logging.info("Split document %s into %d chunk(s)", document_id, len(chunks))

            vectors = await self._embed_chunks(chunks)
            self.logging.info("Generated %d embedding(s) for document %s", len(vectors), document_id)

            points = [
                VectorPoint(
                    id=make_point_id(document_id, chunk.index),
                    values=vector,
                    metadata=VectorPointMetadata(
                        document_id=document_id,
                        file_name=file_name,
                        text=chunk.text,
                        chunk_index=chunk.index,
                        uploaded_at=uploaded_at,
                    ),
                    extra=sanitize_metadata(chunk.metadata),
                ).to_record()
                for chunk, vector in zip(chunks, vectors)
            ]
            await self._upsert_in_batches(points)
        except Exception as exc:
            self.logging.error("Ingestion of '%s' failed: %s", file_name, exc)
            raise
        finally:
            self._remove_upload(file_path)

        self.logging.info("Stored document %s ('%s') with %d vector(s).", document_id, file_name, len(points))
        return document_id

    ##########################################
    ################ HELPERS #################
    ##########################################

    async def _embed_chunks(self, chunks: list[Chunk]) -> list[list[float]]:
        """Embed every chunk with its own request.

        The first failing request fails the whole document; the requests still
        in flight or waiting for the semaphore are cancelled.
        """
        sem = asyncio.Semaphore(self.embed_concurrency)

        async def embed_one(chunk: Chunk) -> list[float]:
            async with sem:
                return await self._embed_client.do_embed_text(chunk.text)

        tasks = [asyncio.create_task(embed_one(chunk)) for chunk in chunks]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

    async def _upsert_in_batches(self, points: list[dict]) -> None:
        total_batches = (len(points) + self.batch_size - 1) // self.batch_size
        for batch_number, batch_start in enumerate(range(0, len(points), self.batch_size), start=1):
            batch = points[batch_start: batch_start + self.batch_size]
            await self._rag_client.do_upsert_points(batch)
            self.logging.debug("Upserted batch %d/%d (%d records)", batch_number, total_batches, len(batch))

    def _get_upload_path(self, file_name: str) -> str:
        safe_name = os.path.basename(file_name.replace("\\", "/")) or "upload"
        return os.path.join(self.upload_dir, f"{int(time.time() * 1000)}-{safe_name}")

    def _write_upload(self, file_path: str, content: bytes) -> None:
        os.makedirs(self.upload_dir, exist_ok=True)
        with open(file_path, "wb") as f:
            f.write(content)

    def _remove_upload(self, file_path: str) -> None:
        try:
            os.remove(file_path)
        except FileNotFoundError:
            # the write failed before the file was created
            return
        except OSError as exc:
            self.logging.warning("Could not remove temporary upload %s: %s", file_path, exc)
