from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.errors import UpstreamError


class LLMClientGoogle(LLMClientInterface):
    """Chat client for Gemini models on the Google Generative Language API."""

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
        model = self.chat_model
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

    def _get_endpoint_chat(self) -> str:
        return f"/v1beta/{self._get_model_path()}:generateContent"

    ################ PAYLOAD BUILDER ##################
    def get_chat_payload(self, messages: list[dict]) -> dict:
        """Build the generateContent request body.

        System messages become the systemInstruction, "assistant" turns are
        sent with Gemini's "model" role.

        Args:
            messages (list[dict]): OpenAI-format messages.

        Returns:
            dict: {"contents": [...], "generationConfig": {...}} plus an optional "systemInstruction".
        """
        contents: list[dict] = []
        system_parts: list[dict] = []
        for message in messages:
            role = message.get("role", "user")
            part = {"text": message.get("content", "")}
            if role == "system":
                system_parts.append(part)
                continue
            contents.append({
                "role": "model" if role == "assistant" else "user",
                "parts": [part],
            })

        payload: dict = {
            "contents": contents,
            "generationConfig": {"temperature": self.temperature},
        }
        if system_parts:
            payload["systemInstruction"] = {"parts": system_parts}
        return payload

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_chat_response(self, response_data: dict) -> str:
        candidates = response_data.get("candidates") or []
        if not candidates:
            feedback = response_data.get("promptFeedback", {})
            raise UpstreamError(
                self.get_client_type(),
                "Gemini response does not contain a candidate. "
                f"Block reason: {feedback.get('blockReason', 'unknown')}",
            )
        parts = (candidates[0].get("content") or {}).get("parts") or []
        texts = [part["text"] for part in parts if isinstance(part.get("text"), str)]
        if not texts:
            raise UpstreamError(
                self.get_client_type(),
                "Gemini candidate contains no text. "
                f"Finish reason: {candidates[0].get('finishReason', 'unknown')}",
            )
        return "".join(texts)
