from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig


class LLMClientInterface(ClientInterface):
    """Text generation backend. Messages use the OpenAI shape {"role", "content"}."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.chat_model = helper_config.get_string_val("LLM_CHAT_MODEL", default="gemini-2.5-flash")
        self.temperature = float(helper_config.get_number_val("LLM_TEMPERATURE", default=0.7))

    ##########################################
    ################ GETTER ##################
    ##########################################

    def _get_client_type(self) -> str:
        return "llm"

    @abstractmethod
    def _get_endpoint_chat(self) -> str:
        """Path of the generation endpoint for the configured model."""
        pass

    ##########################################
    ######### PAYLOAD / RESPONSE #############
    ##########################################

    @abstractmethod
    def get_chat_payload(self, messages: list[dict]) -> dict:
        """Translate OpenAI-shaped messages into the backend request body."""
        pass

    @abstractmethod
    def extract_chat_response(self, response_data: dict) -> str:
        """Pull the reply text out of a backend response.

        Raises:
            UpstreamError: If the response holds no reply text.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_chat(self, messages: list[dict]) -> str:
        """Run one generation over a message history and return the reply text.

        Raises:
            UpstreamError: If the request fails or the reply is missing.
        """
        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_chat(),
            json=self.get_chat_payload(messages),
            raise_on_error=True,
        )
        return self.extract_chat_response(self.parse_json(response))

    async def do_generate(self, prompt: str) -> str:
        """Generate a reply for a single user prompt."""
        return await self.do_chat([{"role": "user", "content": prompt}])
