from shared.clients.ClientManager import ClientManager
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface


class EmbedClientManager(ClientManager[EmbedClientInterface]):
    """Builds the embedding client named in EMBED_ENGINE."""

    client_type = "embed"
    class_prefix = "Embed"
