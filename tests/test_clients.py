"""Request/response mapping of the Google and Pinecone clients over httpx.MockTransport."""

import json

import httpx
import pytest

from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.embed.google.EmbedClientGoogle import EmbedClientGoogle
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.llm.google.LLMClientGoogle import LLMClientGoogle
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.clients.rag.pinecone.RAGClientPinecone import RAGClientPinecone
from shared.models.errors import UpstreamError


@pytest.fixture
def embed_google(helper_config, client_env):
    return EmbedClientGoogle(helper_config=helper_config)


@pytest.fixture
def llm_google(helper_config, client_env):
    return LLMClientGoogle(helper_config=helper_config)


@pytest.fixture
def pinecone(helper_config, client_env):
    return RAGClientPinecone(helper_config=helper_config)


# ---------------------------------------------------------------------------
# Managers
# ---------------------------------------------------------------------------

def test_managers_instantiate_configured_engines(helper_config, client_env, monkeypatch):
    monkeypatch.setenv("EMBED_ENGINE", "google")
    monkeypatch.setenv("LLM_ENGINE", "GOOGLE")
    monkeypatch.setenv("RAG_ENGINE", "pinecone")

    assert isinstance(EmbedClientManager(helper_config=helper_config).get_client(), EmbedClientGoogle)
    assert isinstance(LLMClientManager(helper_config=helper_config).get_client(), LLMClientGoogle)
    assert isinstance(RAGClientManager(helper_config=helper_config).get_client(), RAGClientPinecone)


def test_manager_rejects_unknown_engine(helper_config, client_env, monkeypatch):
    monkeypatch.setenv("RAG_ENGINE", "doesnotexist")
    with pytest.raises(ValueError, match="Unsupported RAG engine"):
        RAGClientManager(helper_config=helper_config)


def test_manager_requires_engine(helper_config, monkeypatch):
    monkeypatch.delenv("EMBED_ENGINE", raising=False)
    with pytest.raises(ValueError):
        EmbedClientManager(helper_config=helper_config)


def test_missing_api_key_fails_at_construction(helper_config, client_env, monkeypatch):
    monkeypatch.delenv("RAG_PINECONE_API_KEY")
    with pytest.raises(ValueError, match="RAG_PINECONE_API_KEY"):
        RAGClientPinecone(helper_config=helper_config)


# ---------------------------------------------------------------------------
# Google embeddings
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_google_embed_request_and_parsing(embed_google, mock_transport):
    requests = mock_transport(
        embed_google,
        lambda request: httpx.Response(200, json={"embeddings": [{"values": [0.1, 0.2]}, {"values": [0.3, 0.4]}]}),
    )

    vectors = await embed_google.do_embed(["first", "second"])

    assert vectors == [[0.1, 0.2], [0.3, 0.4]]
    request = requests[0]
    assert request.url.path == "/v1beta/models/text-embedding-004:batchEmbedContents"
    assert request.headers["x-goog-api-key"] == "google-embed-key"
    body = json.loads(request.content)
    assert body["requests"][1] == {"model": "models/text-embedding-004", "content": {"parts": [{"text": "second"}]}}


@pytest.mark.asyncio
async def test_google_embed_single_text(embed_google, mock_transport):
    mock_transport(embed_google, lambda request: httpx.Response(200, json={"embeddings": [{"values": [1.0, 2.0]}]}))
    assert await embed_google.do_embed_text("hello") == [1.0, 2.0]


@pytest.mark.asyncio
async def test_google_embed_error_status_raises(embed_google, mock_transport):
    mock_transport(embed_google, lambda request: httpx.Response(429, text="quota exceeded"))

    with pytest.raises(UpstreamError) as exc_info:
        await embed_google.do_embed_text("hello")

    assert exc_info.value.details == "quota exceeded"
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_google_embed_empty_response_raises(embed_google, mock_transport):
    mock_transport(embed_google, lambda request: httpx.Response(200, json={}))
    with pytest.raises(UpstreamError):
        await embed_google.do_embed_text("hello")


@pytest.mark.asyncio
async def test_google_embed_count_mismatch_raises(embed_google, mock_transport):
    mock_transport(embed_google, lambda request: httpx.Response(200, json={"embeddings": [{"values": [1.0]}]}))
    with pytest.raises(UpstreamError):
        await embed_google.do_embed(["a", "b"])


@pytest.mark.asyncio
async def test_google_embed_non_json_body_raises(embed_google, mock_transport):
    mock_transport(embed_google, lambda request: httpx.Response(200, text="<html>gateway</html>"))

    with pytest.raises(UpstreamError) as exc_info:
        await embed_google.do_embed_text("hello")

    assert exc_info.value.details == "<html>gateway</html>"
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_google_embed_non_object_body_raises(embed_google, mock_transport):
    mock_transport(embed_google, lambda request: httpx.Response(200, json=[1, 2]))
    with pytest.raises(UpstreamError, match="not a JSON object"):
        await embed_google.do_embed_text("hello")


@pytest.mark.asyncio
async def test_transport_error_becomes_upstream_error(embed_google, mock_transport):
    def unreachable(request):
        raise httpx.ConnectError("connection refused", request=request)

    mock_transport(embed_google, unreachable)
    with pytest.raises(UpstreamError, match="embed"):
        await embed_google.do_embed_text("hello")


@pytest.mark.asyncio
async def test_request_before_boot_fails(embed_google):
    with pytest.raises(Exception, match="boot"):
        await embed_google.do_embed_text("hello")


# ---------------------------------------------------------------------------
# Google LLM
# ---------------------------------------------------------------------------

def test_google_chat_payload_maps_roles(llm_google):
    payload = llm_google.get_chat_payload([
        {"role": "system", "content": "be brief"},
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
    ])

    assert payload["systemInstruction"] == {"parts": [{"text": "be brief"}]}
    assert [content["role"] for content in payload["contents"]] == ["user", "model"]
    assert payload["generationConfig"] == {"temperature": 0.7}


@pytest.mark.asyncio
async def test_google_generate(llm_google, mock_transport):
    requests = mock_transport(
        llm_google,
        lambda request: httpx.Response(200, json={
            "candidates": [{"content": {"parts": [{"text": "Hello "}, {"text": "world"}]}}],
        }),
    )

    answer = await llm_google.do_generate("Say hello")

    assert answer == "Hello world"
    assert requests[0].url.path == "/v1beta/models/gemini-2.5-flash:generateContent"
    body = json.loads(requests[0].content)
    assert body["contents"] == [{"role": "user", "parts": [{"text": "Say hello"}]}]


@pytest.mark.asyncio
async def test_google_blocked_prompt_raises(llm_google, mock_transport):
    mock_transport(llm_google, lambda request: httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}}))
    with pytest.raises(UpstreamError, match="SAFETY"):
        await llm_google.do_generate("something")


@pytest.mark.asyncio
async def test_google_candidate_without_text_raises(llm_google, mock_transport):
    mock_transport(
        llm_google,
        lambda request: httpx.Response(200, json={"candidates": [{"content": {"parts": []}, "finishReason": "MAX_TOKENS"}]}),
    )
    with pytest.raises(UpstreamError, match="MAX_TOKENS"):
        await llm_google.do_generate("something")


# ---------------------------------------------------------------------------
# Pinecone
# ---------------------------------------------------------------------------

def _pinecone_handler(index_names=("docs",), matches=None, stats=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "api.pinecone.io":
            if request.method == "GET" and request.url.path == "/indexes":
                return httpx.Response(200, json={"indexes": [{"name": name} for name in index_names]})
            if request.method == "POST" and request.url.path == "/indexes":
                return httpx.Response(201, json={"name": "docs"})
            if request.url.path == "/indexes/docs":
                return httpx.Response(200, json={"name": "docs", "dimension": 768, "host": "docs-abc.svc.pinecone.io"})
        if request.url.host == "docs-abc.svc.pinecone.io":
            if request.url.path == "/query":
                return httpx.Response(200, json={"matches": matches or []})
            if request.url.path == "/describe_index_stats":
                return httpx.Response(200, json=stats or {})
            return httpx.Response(200, json={})
        return httpx.Response(404, text="not found")

    return handler


@pytest.mark.asyncio
async def test_pinecone_existence_check(pinecone, mock_transport):
    mock_transport(pinecone, _pinecone_handler(index_names=("other", "docs")))
    assert await pinecone.do_existence_check() is True

    mock_transport(pinecone, _pinecone_handler(index_names=("other",)))
    assert await pinecone.do_existence_check() is False


@pytest.mark.asyncio
async def test_pinecone_create_index_payload(pinecone, mock_transport):
    requests = mock_transport(pinecone, _pinecone_handler())

    await pinecone.do_create_index(dimension=768, metric="Cosine")

    body = json.loads(requests[0].content)
    assert body == {
        "name": "docs",
        "dimension": 768,
        "metric": "cosine",
        "spec": {"serverless": {"cloud": "aws", "region": "us-east-1"}},
    }
    assert requests[0].headers["Api-Key"] == "pinecone-key"
    assert requests[0].headers["X-Pinecone-API-Version"] == "2024-07"


@pytest.mark.asyncio
async def test_pinecone_record_operations_need_resolved_host(pinecone, mock_transport):
    mock_transport(pinecone, _pinecone_handler())
    with pytest.raises(Exception, match="has not been resolved"):
        await pinecone.do_query([0.1, 0.2], top_k=3)


@pytest.mark.asyncio
async def test_pinecone_resolve_uses_reported_host(pinecone, mock_transport):
    requests = mock_transport(pinecone, _pinecone_handler())

    description = await pinecone.do_resolve_index()
    await pinecone.do_upsert_points([{"id": "d-chunk-0", "values": [0.1], "metadata": {"documentId": "d"}}])

    assert description["dimension"] == 768
    upsert = requests[-1]
    assert str(upsert.url) == "https://docs-abc.svc.pinecone.io/vectors/upsert"
    assert json.loads(upsert.content) == {
        "vectors": [{"id": "d-chunk-0", "values": [0.1], "metadata": {"documentId": "d"}}],
        "namespace": "",
    }


@pytest.mark.asyncio
async def test_pinecone_configured_host_takes_precedence(helper_config, client_env, monkeypatch, mock_transport):
    monkeypatch.setenv("RAG_PINECONE_INDEX_HOST", "custom-host.example")
    client = RAGClientPinecone(helper_config=helper_config)
    requests = mock_transport(client, lambda request: httpx.Response(200, json={}))

    await client.do_delete_points_by_filter("documentId", "d")

    assert str(requests[0].url) == "https://custom-host.example/vectors/delete"
    assert json.loads(requests[0].content) == {"filter": {"documentId": {"$eq": "d"}}, "namespace": ""}


@pytest.mark.asyncio
async def test_pinecone_query_parses_matches_with_fallbacks(pinecone, mock_transport):
    requests = mock_transport(pinecone, _pinecone_handler(matches=[
        {"id": "d-chunk-2", "score": 0.87, "metadata": {
            "text": "hello", "fileName": "a.txt", "documentId": "d", "chunkIndex": 2.0,
        }},
        {"id": "x-chunk-0"},
    ]))
    await pinecone.do_resolve_index()

    matches = await pinecone.do_query([0.5, 0.5], top_k=2)

    assert matches[0].score == 0.87
    assert matches[0].chunk_index == 2
    assert matches[0].file_name == "a.txt"
    assert matches[1].score is None
    assert matches[1].text == ""
    assert matches[1].file_name == "unknown"
    assert matches[1].document_id == ""
    body = json.loads(requests[-1].content)
    assert body == {"namespace": "", "vector": [0.5, 0.5], "topK": 2, "includeMetadata": True, "includeValues": False}


@pytest.mark.asyncio
async def test_pinecone_query_non_json_body_raises(pinecone, mock_transport):
    handler = _pinecone_handler()

    def gateway_on_query(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/query":
            return httpx.Response(200, text="<html>bad gateway</html>")
        return handler(request)

    mock_transport(pinecone, gateway_on_query)
    await pinecone.do_resolve_index()

    with pytest.raises(UpstreamError, match="rag"):
        await pinecone.do_query([0.5, 0.5], top_k=2)


@pytest.mark.asyncio
async def test_pinecone_stats(pinecone, mock_transport):
    mock_transport(pinecone, _pinecone_handler(stats={
        "namespaces": {"": {"vectorCount": 12}},
        "dimension": 768,
        "indexFullness": 0.01,
        "totalVectorCount": 12,
        "metric": "cosine",
    }))
    await pinecone.do_resolve_index()

    stats = await pinecone.do_describe_stats()

    assert stats.total_vector_count == 12
    assert stats.index_fullness == 0.01
    assert stats.model_dump(by_alias=True)["totalVectorCount"] == 12
    assert stats.model_dump(by_alias=True)["metric"] == "cosine"


@pytest.mark.asyncio
async def test_pinecone_error_status_raises(pinecone, mock_transport):
    mock_transport(pinecone, lambda request: httpx.Response(401, text="invalid api key"))
    with pytest.raises(UpstreamError):
        await pinecone.do_existence_check()
