from shared.clients.ClientManager import ClientManager
from shared.clients.llm.LLMClientInterface import LLMClientInterface


class LLMClientManager(ClientManager[LLMClientInterface]):
    """Builds the chat/generation client named in LLM_ENGINE."""

    client_type = "llm"
    class_prefix = "LLM"
