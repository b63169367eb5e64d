from typing import Any

from shared.helper.HelperConfig import HelperConfig
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.IndexStats import IndexStats
from shared.clients.rag.models.QueryMatch import QueryMatch
from shared.models.config import EnvConfig


class RAGClientPinecone(RAGClientInterface):
    """Pinecone REST client.

    Index management goes to the control plane (RAG_PINECONE_BASE_URL), record
    operations to the per-index data plane host, which is either configured
    via RAG_PINECONE_INDEX_HOST or looked up by do_resolve_index().
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://api.pinecone.io", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default=None, val_type="string")
        self._api_version = self.get_config_val("API_VERSION", default="2024-07", val_type="string")
        self._index_name = self.get_config_val("INDEX", default=None, val_type="string")
        self._namespace = self.get_config_val("NAMESPACE", default="", val_type="string")
        self._cloud = self.get_config_val("CLOUD", default="aws", val_type="string")
        self._region = self.get_config_val("REGION", default="us-east-1", val_type="string")
        self._index_host = self._normalize_host(self.get_config_val("INDEX_HOST", default="", val_type="string"))

    @staticmethod
    def _normalize_host(host: str) -> str:
        if not host:
            return ""
        return host if host.startswith(("http://", "https://")) else f"https://{host}"

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Pinecone"

    def get_index_name(self) -> str:
        return self._index_name

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://api.pinecone.io"),
            EnvConfig(env_key="API_KEY", val_type="string", default=None),
            EnvConfig(env_key="API_VERSION", val_type="string", default="2024-07"),
            EnvConfig(env_key="INDEX", val_type="string", default=None),
            EnvConfig(env_key="NAMESPACE", val_type="string", default=""),
            EnvConfig(env_key="CLOUD", val_type="string", default="aws"),
            EnvConfig(env_key="REGION", val_type="string", default="us-east-1"),
            EnvConfig(env_key="INDEX_HOST", val_type="string", default=""),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {
            "Api-Key": self._api_key,
            "X-Pinecone-API-Version": self._api_version,
        }

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_data_plane_url(self) -> str:
        if not self._index_host:
            raise Exception(
                f"Pinecone index '{self._index_name}' has not been resolved. Call do_resolve_index() first."
            )
        return self._index_host

    def _get_endpoint_healthcheck(self) -> str:
        return "/indexes"

    def _get_endpoint_list_indexes(self) -> str:
        return "/indexes"

    def _get_endpoint_create_index(self) -> str:
        return "/indexes"

    def _get_endpoint_describe_index(self) -> str:
        return f"/indexes/{self._index_name}"

    def _get_endpoint_upsert(self) -> str:
        return "/vectors/upsert"

    def _get_endpoint_query(self) -> str:
        return "/query"

    def _get_endpoint_delete(self) -> str:
        return "/vectors/delete"

    def _get_endpoint_stats(self) -> str:
        return "/describe_index_stats"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_upsert_payload(self, points: list[dict[str, Any]]) -> dict:
        return {"vectors": points, "namespace": self._namespace}

    def get_query_payload(self, vector: list[float], top_k: int) -> dict:
        return {
            "namespace": self._namespace,
            "vector": vector,
            "topK": top_k,
            "includeMetadata": True,
            "includeValues": False,
        }

    def get_delete_payload(self, key: str, value: Any) -> dict:
        return {"filter": {key: {"$eq": value}}, "namespace": self._namespace}

    def get_create_index_payload(self, dimension: int, metric: str) -> dict:
        return {
            "name": self._index_name,
            "dimension": dimension,
            "metric": metric.lower(),
            "spec": {"serverless": {"cloud": self._cloud, "region": self._region}},
        }

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_index_names(self, raw_response: dict) -> list[str]:
        return [index.get("name") for index in raw_response.get("indexes") or [] if isinstance(index, dict)]

    def extract_query_matches(self, raw_response: dict) -> list[QueryMatch]:
        matches: list[QueryMatch] = []
        for match in raw_response.get("matches") or []:
            if not isinstance(match, dict):
                continue
            metadata = match.get("metadata") or {}
            text = metadata.get("text")
            file_name = metadata.get("fileName")
            document_id = metadata.get("documentId")
            chunk_index = metadata.get("chunkIndex")
            score = match.get("score")
            matches.append(QueryMatch(
                id=str(match.get("id", "")),
                score=float(score) if isinstance(score, (int, float)) else None,
                text=text if isinstance(text, str) else "",
                file_name=file_name if isinstance(file_name, str) else "unknown",
                document_id=document_id if isinstance(document_id, str) else "",
                # numbers come back as floats from the metadata store
                chunk_index=int(chunk_index) if isinstance(chunk_index, (int, float)) and not isinstance(chunk_index, bool) else 0,
            ))
        return matches

    def extract_index_stats(self, raw_response: dict) -> IndexStats:
        return IndexStats.model_validate(raw_response)

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_resolve_index(self) -> dict:
        """Describe the index and remember its data plane host."""
        resp = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_describe_index(),
            raise_on_error=True,
        )
        description = self.parse_json(resp)
        host = description.get("host")
        if not self._index_host:
            if not host:
                raise Exception(f"Pinecone did not report a host for index '{self._index_name}'.")
            self._index_host = self._normalize_host(host)
        self.logging.info("Pinecone index '%s' served by %s", self._index_name, self._index_host)
        return description
