from shared.clients.ClientManager import ClientManager
from shared.clients.rag.RAGClientInterface import RAGClientInterface


class RAGClientManager(ClientManager[RAGClientInterface]):
    """Builds the vector store client named in RAG_ENGINE."""

    client_type = "rag"
    class_prefix = "RAG"
