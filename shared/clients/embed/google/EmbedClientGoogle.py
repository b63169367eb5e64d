from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.errors import UpstreamError


class EmbedClientGoogle(EmbedClientInterface):
    """Embedding client for the Google Generative Language API (e.g. text-embedding-004)."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://generativelanguage.googleapis.com", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default=None, val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Google"

    def _get_model_path(self) -> str:
        # the API expects "models/<name>", accept both spellings in the env
        model = self.embed_model
        return model if model.startswith("models/") else f"models/{model}"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://generativelanguage.googleapis.com"),
            EnvConfig(env_key="API_KEY", val_type="string", default=None),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"x-goog-api-key": self._api_key}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return f"/v1beta/{self._get_model_path()}"

    def get_endpoint_embedding(self) -> str:
        return f"/v1beta/{self._get_model_path()}:batchEmbedContents"

    ################ PAYLOAD BUILDER ##################
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the batchEmbedContents request body.

        Returns:
            dict: {"requests": [{"model": "models/...", "content": {"parts": [{"text": "..."}]}}, ...]}
        """
        model = self._get_model_path()
        return {
            "requests": [
                {"model": model, "content": {"parts": [{"text": text}]}}
                for text in texts
            ]
        }

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        embeddings = response_data.get("embeddings")
        if not embeddings:
            raise UpstreamError(
                self.get_client_type(),
                f"Google response does not contain embeddings. Response keys: {list(response_data.keys())}",
            )
        vectors: list[list[float]] = []
        for embedding in embeddings:
            values = embedding.get("values") if isinstance(embedding, dict) else None
            if not values:
                raise UpstreamError(self.get_client_type(), "Google response contains an empty embedding.")
            vectors.append(values)
        return vectors
