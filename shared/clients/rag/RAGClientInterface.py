from abc import abstractmethod
from typing import Any

import httpx
from shared.clients.ClientInterface import ClientInterface
from shared.clients.rag.models.IndexStats import IndexStats
from shared.clients.rag.models.QueryMatch import QueryMatch

from shared.helper.HelperConfig import HelperConfig


class RAGClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "rag"
        """
        return "rag"

    @abstractmethod
    def get_index_name(self) -> str:
        """Returns the name of the configured index / collection."""
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_data_plane_url(self) -> str:
        """
        Returns the base URL serving record operations (upsert, query, delete, stats).

        Raises:
            Exception: If the index has not been resolved yet.
        """
        pass

    @abstractmethod
    def _get_endpoint_upsert(self) -> str:
        """Returns the endpoint path for upsert requests (e.g. "/vectors/upsert")."""
        pass

    @abstractmethod
    def _get_endpoint_query(self) -> str:
        """Returns the endpoint path for similarity queries (e.g. "/query")."""
        pass

    @abstractmethod
    def _get_endpoint_delete(self) -> str:
        """Returns the endpoint path for filter-based deletes (e.g. "/vectors/delete")."""
        pass

    @abstractmethod
    def _get_endpoint_stats(self) -> str:
        """Returns the endpoint path for index statistics (e.g. "/describe_index_stats")."""
        pass

    @abstractmethod
    def _get_endpoint_list_indexes(self) -> str:
        """Returns the endpoint path listing the existing indexes (e.g. "/indexes")."""
        pass

    @abstractmethod
    def _get_endpoint_create_index(self) -> str:
        """Returns the endpoint path for index creation (e.g. "/indexes")."""
        pass

    @abstractmethod
    def _get_endpoint_describe_index(self) -> str:
        """Returns the endpoint path describing the configured index (e.g. "/indexes/my-index")."""
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_upsert_payload(self, points: list[dict[str, Any]]) -> dict:
        """
        Builds the backend-specific request payload for an upsert.

        Args:
            points (list[dict[str, Any]]): Records shaped {"id", "values", "metadata"}.
        """
        pass

    @abstractmethod
    def get_query_payload(self, vector: list[float], top_k: int) -> dict:
        """
        Builds the backend-specific request payload for a similarity query with metadata.

        Args:
            vector (list[float]): The query vector.
            top_k (int): Maximum number of matches to return.
        """
        pass

    @abstractmethod
    def get_delete_payload(self, key: str, value: Any) -> dict:
        """
        Builds the backend-specific request payload deleting every record whose metadata key equals value.
        """
        pass

    @abstractmethod
    def get_create_index_payload(self, dimension: int, metric: str) -> dict:
        """
        Builds the backend-specific request payload for index creation.
        """
        pass

    ################ RESPONSE PARSER ##################
    @abstractmethod
    def extract_index_names(self, raw_response: dict) -> list[str]:
        """Extracts the names of all existing indexes from a list response."""
        pass

    @abstractmethod
    def extract_query_matches(self, raw_response: dict) -> list[QueryMatch]:
        """Extracts the matches of a similarity query, in the order returned by the backend."""
        pass

    @abstractmethod
    def extract_index_stats(self, raw_response: dict) -> IndexStats:
        """Extracts the statistics of the index."""
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_existence_check(self) -> bool:
        """Check if the configured index exists in the backend.

        Returns:
            bool: True if the index exists, False otherwise.
        """
        resp = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_list_indexes(),
            raise_on_error=True,
        )
        return self.get_index_name() in self.extract_index_names(self.parse_json(resp))

    async def do_create_index(self, dimension: int = 768, metric: str = "cosine") -> httpx.Response:
        """Create the configured index in the backend.

        Args:
            dimension (int): The size of the vectors stored in the index.
            metric (str): The distance metric.

        Returns:
            httpx.Response: The response from the create request.
        """
        return await self.do_request(
            method="POST",
            json=self.get_create_index_payload(dimension, metric),
            endpoint=self._get_endpoint_create_index(),
            raise_on_error=True,
        )

    @abstractmethod
    async def do_resolve_index(self) -> dict:
        """Look up the configured index and prepare the client for record operations.

        Returns:
            dict: The raw index description.
        """
        pass

    async def do_upsert_points(self, points: list[dict[str, Any]]) -> httpx.Response:
        """Insert records, or replace existing ones sharing the same id.

        Args:
            points (list[dict[str, Any]]): Records shaped {"id", "values", "metadata"}.

        Returns:
            httpx.Response: The response from the upsert request.
        """
        return await self.do_request(
            method="POST",
            json=self.get_upsert_payload(points),
            base_url=self._get_data_plane_url(),
            endpoint=self._get_endpoint_upsert(),
            raise_on_error=True,
        )

    async def do_query(self, vector: list[float], top_k: int = 5) -> list[QueryMatch]:
        """Return the top_k most similar records including their metadata.

        Args:
            vector (list[float]): The query vector.
            top_k (int): Maximum number of matches.

        Returns:
            list[QueryMatch]: The matches in the order returned by the backend.
        """
        resp = await self.do_request(
            method="POST",
            json=self.get_query_payload(vector, top_k),
            base_url=self._get_data_plane_url(),
            endpoint=self._get_endpoint_query(),
            raise_on_error=True,
        )
        return self.extract_query_matches(self.parse_json(resp))

    async def do_delete_points_by_filter(self, key: str, value: Any) -> None:
        """Delete every record whose metadata field ``key`` equals ``value``.

        A filter matching nothing is a no-op on the backend.
        """
        await self.do_request(
            method="POST",
            json=self.get_delete_payload(key, value),
            base_url=self._get_data_plane_url(),
            endpoint=self._get_endpoint_delete(),
            raise_on_error=True,
        )

    async def do_describe_stats(self) -> IndexStats:
        """Fetch record count, dimension and fullness of the index."""
        resp = await self.do_request(
            method="POST",
            json={},
            base_url=self._get_data_plane_url(),
            endpoint=self._get_endpoint_stats(),
            raise_on_error=True,
        )
        return self.extract_index_stats(self.parse_json(resp))
