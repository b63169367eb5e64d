import asyncio

from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.IndexStats import IndexStats
from shared.helper.HelperConfig import HelperConfig
from shared.models.errors import ValidationError

PROVISION_WAIT_SECONDS = 5


class IndexService:
    """Index level operations: startup provisioning, document deletion and stats."""

    def __init__(
        self,
        helper_config: HelperConfig,
        rag_client: RAGClientInterface,
        embed_client: EmbedClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._rag_client = rag_client
        self._embed_client = embed_client
        self.provision_wait = float(
            helper_config.get_number_val("RAG_PINECONE_PROVISION_WAIT", default=PROVISION_WAIT_SECONDS)
        )

    async def ensure_index(self) -> None:
        """Create the configured index if it is missing, then resolve it.

        Safe to call on every startup.
        """
        index_name = self._rag_client.get_index_name()
        if not await self._rag_client.do_existence_check():
            self.logging.info(
                "Creating index '%s' (dimension %d, metric %s)...",
                index_name, self._embed_client.get_dimension(), self._embed_client.get_distance(),
            )
            await self._rag_client.do_create_index(
                dimension=self._embed_client.get_dimension(),
                metric=self._embed_client.get_distance(),
            )
            # the provider needs a moment before the new index accepts requests
            await asyncio.sleep(self.provision_wait)
            self.logging.info("Index '%s' created.", index_name)
        else:
            self.logging.info("Index '%s' already exists.", index_name)

        description = await self._rag_client.do_resolve_index()
        index_dimension = description.get("dimension")
        if index_dimension is not None and index_dimension != self._embed_client.get_dimension():
            self.logging.warning(
                "Index '%s' has dimension %s but the embedding model produces %d. Writes and queries will be rejected.",
                index_name, index_dimension, self._embed_client.get_dimension(),
            )

    async def delete_document(self, document_id: str) -> None:
        """Remove every vector belonging to a document. Unknown ids are a no-op.

        Raises:
            ValidationError: If the id is blank.
        """
        if not document_id or not document_id.strip():
            raise ValidationError("Document ID is required")
        await self._rag_client.do_delete_points_by_filter("documentId", document_id)
        self.logging.info("Deleted vectors of document %s", document_id)

    async def get_stats(self) -> IndexStats:
        """Return the vector store statistics unmodified."""
        return await self._rag_client.do_describe_stats()
