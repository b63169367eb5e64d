"""Shared fixtures: configuration, in-memory fakes for the three external services."""

import logging
import os
import tempfile

# logs are written below ROOT_DIR as soon as the app module is imported
os.environ.setdefault("ROOT_DIR", tempfile.mkdtemp(prefix="doc-qa-bridge-"))

import httpx
import pytest

from shared.clients.rag.models.IndexStats import IndexStats
from shared.clients.rag.models.QueryMatch import QueryMatch
from shared.helper.HelperConfig import HelperConfig
from shared.models.errors import UpstreamError


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeEmbedClient:
    """Deterministic embedding fake: vector derived from the text length."""

    def __init__(self, dimension: int = 4, fail: bool = False):
        self.dimension = dimension
        self.fail = fail
        self.calls: list[str] = []

    async def do_embed_text(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail:
            raise UpstreamError("embed", "embedding service unavailable")
        return [float(len(text))] + [0.0] * (self.dimension - 1)

    def get_dimension(self) -> int:
        return self.dimension

    def get_distance(self) -> str:
        return "cosine"


class FakeRAGClient:
    """In-memory vector store keyed by record id."""

    def __init__(self, index_exists: bool = True):
        self.records: dict[str, dict] = {}
        self.upsert_batches: list[int] = []
        self.matches: list[QueryMatch] = []
        self.query_calls: list[tuple[list[float], int]] = []
        self.deleted_filters: list[tuple[str, str]] = []
        self.index_exists = index_exists
        self.created_with: tuple[int, str] | None = None
        self.resolved = False
        self.fail_query = False

    def get_index_name(self) -> str:
        return "test-index"

    async def do_existence_check(self) -> bool:
        return self.index_exists

    async def do_create_index(self, dimension: int = 768, metric: str = "cosine"):
        self.created_with = (dimension, metric)
        self.index_exists = True

    async def do_resolve_index(self) -> dict:
        self.resolved = True
        return {"name": "test-index", "dimension": 4, "host": "test-index.example"}

    async def do_upsert_points(self, points: list[dict]) -> None:
        self.upsert_batches.append(len(points))
        for point in points:
            self.records[point["id"]] = point

    async def do_query(self, vector: list[float], top_k: int = 5) -> list[QueryMatch]:
        self.query_calls.append((vector, top_k))
        if self.fail_query:
            raise UpstreamError("rag", "vector store unavailable")
        return self.matches[:top_k]

    async def do_delete_points_by_filter(self, key: str, value: str) -> None:
        self.deleted_filters.append((key, value))
        self.records = {
            record_id: record
            for record_id, record in self.records.items()
            if record["metadata"].get(key) != value
        }

    async def do_describe_stats(self) -> IndexStats:
        return IndexStats(
            namespaces={"": {"vectorCount": len(self.records)}},
            dimension=4,
            index_fullness=0.0,
            total_vector_count=len(self.records),
        )


class FakeLLMClient:
    def __init__(self, answer: str = "This is the answer."):
        self.answer = answer
        self.prompts: list[str] = []

    async def do_generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.answer


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def test_logger():
    return logging.getLogger("doc_qa_bridge.tests")


@pytest.fixture
def helper_config(test_logger, tmp_path, monkeypatch):
    """HelperConfig reading a clean environment with uploads redirected to tmp_path."""
    for key in (
        "CHUNK_SIZE", "CHUNK_OVERLAP", "UPSERT_BATCH_SIZE", "UPLOAD_MAX_BYTES",
        "QUERY_TOP_K", "QUERY_SIMILARITY_THRESHOLD", "SOURCE_EXCERPT_CHARS", "APP_ENV",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("RAG_PINECONE_PROVISION_WAIT", "0")
    return HelperConfig(logger=test_logger)


@pytest.fixture
def embed_client():
    return FakeEmbedClient()


@pytest.fixture
def rag_client():
    return FakeRAGClient()


@pytest.fixture
def llm_client():
    return FakeLLMClient()


@pytest.fixture
def client_env(monkeypatch):
    """Minimal environment for instantiating the real Google and Pinecone clients."""
    monkeypatch.setenv("EMBED_GOOGLE_API_KEY", "google-embed-key")
    monkeypatch.setenv("LLM_GOOGLE_API_KEY", "google-llm-key")
    monkeypatch.setenv("RAG_PINECONE_API_KEY", "pinecone-key")
    monkeypatch.setenv("RAG_PINECONE_INDEX", "docs")
    for key in ("RAG_PINECONE_INDEX_HOST", "RAG_PINECONE_NAMESPACE", "EMBED_MODEL", "LLM_CHAT_MODEL"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def mock_transport():
    """Attach an httpx.MockTransport to a booted client and record the requests it sends."""

    def attach(client, handler):
        requests: list[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        client._client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
        return requests

    return attach
