from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.QueryMatch import QueryMatch
from shared.helper.HelperConfig import HelperConfig
from shared.models.errors import ValidationError
from server.models.requests import QueryRequest
from server.models.responses import QueryResponse, SourceItem

QUERY_TOP_K = 5
QUERY_SIMILARITY_THRESHOLD = 0.3
SOURCE_EXCERPT_CHARS = 200


def build_context(matches: list[QueryMatch]) -> str:
    """Join the matched chunk texts, labelled [Document 1], [Document 2], ..."""
    return "\n\n".join(
        f"[Document {idx}]: {match.text}" for idx, match in enumerate(matches, start=1)
    )


def build_grounded_prompt(query: str, context: str) -> str:
    return (
        "You are a helpful assistant. Answer the user's question using only the context below. "
        "If the answer cannot be found in the context, say so explicitly instead of guessing. "
        "Always reply in the same language as the question.\n\n"
        f"Context:\n{context}\n\n"
        f"Question: {query}\n\n"
        "Answer:"
    )


def build_conversational_prompt(query: str) -> str:
    return (
        "You are a friendly, helpful assistant for a document question-answering service. "
        "No relevant documents were found for this message, so reply conversationally without "
        "inventing document content. If the user seems to ask about their documents, suggest "
        "uploading a relevant file. Always reply in the same language as the user.\n\n"
        f"User: {query}\n\n"
        "Assistant:"
    )


def make_excerpt(text: str, max_chars: int = SOURCE_EXCERPT_CHARS) -> str:
    return text[:max_chars] + "..."


class QueryService:
    """Answers questions: embed -> retrieve -> confidence gate -> generate."""

    def __init__(
        self,
        helper_config: HelperConfig,
        rag_client: RAGClientInterface,
        embed_client: EmbedClientInterface,
        llm_client: LLMClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._rag_client = rag_client
        self._embed_client = embed_client
        self._llm_client = llm_client

        self.default_top_k = int(helper_config.get_number_val("QUERY_TOP_K", default=QUERY_TOP_K))
        self.default_threshold = float(
            helper_config.get_number_val("QUERY_SIMILARITY_THRESHOLD", default=QUERY_SIMILARITY_THRESHOLD)
        )
        self.excerpt_chars = int(helper_config.get_number_val("SOURCE_EXCERPT_CHARS", default=SOURCE_EXCERPT_CHARS))

    ##########################################
    ############### CORE #####################
    ##########################################

    async def answer(self, request: QueryRequest) -> QueryResponse:
        """Produce an answer for a question, grounded in the stored documents when possible.

        When the store returns nothing, or the best match scores below the
        similarity threshold, the question is answered conversationally without
        document context and without sources.

        Args:
            request (QueryRequest): The question, optional topK and similarityThreshold.

        Returns:
            QueryResponse: The answer, its sources and the conversational flag.

        Raises:
            ValidationError: If the query is missing or topK is not positive.
            UpstreamError: If the embed, query or generate call fails.
        """
        query = (request.query or "").strip()
        if not query:
            raise ValidationError("Query is required")
        top_k = request.top_k if request.top_k is not None else self.default_top_k
        if top_k < 1:
            raise ValidationError("topK must be a positive integer")
        threshold = (
            request.similarity_threshold
            if request.similarity_threshold is not None
            else self.default_threshold
        )

        self.logging.info("Query: '%s', topK: %d, threshold: %.3f", query, top_k, threshold)

        query_vector = await self._embed_client.do_embed_text(query)
        self.logging.debug("Query vector dimension: %d", len(query_vector))

        matches = await self._rag_client.do_query(query_vector, top_k)
        self.logging.info("Found %d candidate chunk(s)", len(matches))

        if not matches:
            self.logging.info("No matches, answering conversationally.")
            return await self._answer_conversationally(query)

        best_score = max(match.score if match.score is not None else 0.0 for match in matches)
        if best_score < threshold:
            self.logging.info(
                "Best score %.3f is below threshold %.3f, answering conversationally.",
                best_score, threshold,
            )
            return await self._answer_conversationally(query)

        prompt = build_grounded_prompt(query, build_context(matches))
        answer = await self._llm_client.do_generate(prompt)
        self.logging.info("Generated grounded answer from %d source(s).", len(matches))

        return QueryResponse(
            answer=answer,
            sources=[
                SourceItem(
                    file_name=match.file_name,
                    score=match.score,
                    text=make_excerpt(match.text, self.excerpt_chars),
                )
                for match in matches
            ],
            conversational=False,
        )

    async def _answer_conversationally(self, query: str) -> QueryResponse:
        answer = await self._llm_client.do_generate(build_conversational_prompt(query))
        return QueryResponse(answer=answer, sources=[], conversational=True)
