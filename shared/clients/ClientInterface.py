from abc import ABC, abstractmethod
from typing import Any, Callable

import httpx
from httpx._types import QueryParamTypes, RequestContent

from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.errors import UpstreamError

# how many characters of an error body end up in logs and error details
ERROR_BODY_PREVIEW = 500


class ClientInterface(ABC):
    """Base class of every external service client (embed, rag, llm).

    A client owns one httpx.AsyncClient between boot() and close(). Engine
    specific settings are read from ``<TYPE>_<ENGINE>_<KEY>`` environment
    variables and checked when the client is constructed, so a missing
    credential fails at startup rather than on the first upload.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=30.0)

        self._client: httpx.AsyncClient | None = None
        self.validate_full_configuration()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """
        Reads every setting listed by _get_required_config() once.

        Raises:
            ValueError: If a required setting is missing or cannot be parsed.
        """
        for config in self._get_required_config():
            self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        """Lowercase client type, e.g. "rag"."""
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        pass

    def get_engine_name(self) -> str:
        """Lowercase engine name, e.g. "pinecone"."""
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """
        Lists the engine specific settings of the client.

        Returns:
            list[EnvConfig]: One entry per setting; a None default marks it as required.
        """
        pass

    def _get_config_key_name(self, raw_key: str) -> str:
        """Full env key for an engine setting, e.g. "API_KEY" -> "RAG_PINECONE_API_KEY"."""
        return "_".join((self.get_client_type(), self.get_engine_name(), raw_key)).upper()

    def _get_config_reader(self, val_type: str) -> Callable[..., Any]:
        readers: dict[str, Callable[..., Any]] = {
            "string": self._helper_config.get_string_val,
            "number": self._helper_config.get_number_val,
            "bool": self._helper_config.get_bool_val,
            "list": self._helper_config.get_list_val,
        }
        if val_type not in readers:
            raise ValueError(
                f"Unsupported config value type '{val_type}' in {self.get_client_type().upper()} client '{self.get_engine_name()}'."
            )
        return readers[val_type]

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """
        Reads an engine specific setting.

        Args:
            raw_key (str): The setting name without prefix, e.g. "API_KEY".
            default (Any): Returned when the variable is unset. None makes the setting required.
            val_type (str): One of "string", "number", "bool", "list".
        """
        reader = self._get_config_reader(val_type)
        return reader(self._get_config_key_name(raw_key), default=default)

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """Headers carrying the credential, sent with every request."""
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_base_url(self) -> str:
        """Default base URL of the backend, e.g. "https://api.pinecone.io"."""
        pass

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        """A cheap authenticated GET endpoint used at startup."""
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_healthcheck(self) -> httpx.Response:
        """Checks that the backend is reachable and accepts the credential.

        The response is returned as is; the caller decides what a failing status means.
        """
        return await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck())

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self) -> None:
        self._client = httpx.AsyncClient(timeout=self.timeout)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
        self._client = None

    def _build_url(self, endpoint: str, base_url: str | None) -> str:
        path = endpoint.strip().lstrip("/")
        base = (base_url or self._get_base_url()).rstrip("/")
        return f"{base}/{path}" if path else base

    async def do_request(
        self,
        method: str = "GET",
        content: RequestContent | None = None,
        json: dict | None = None,
        params: QueryParamTypes | None = None,
        endpoint: str = "",
        base_url: str | None = None,
        additional_headers: dict | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Sends one HTTP request to the backend.

        Args:
            method: HTTP method.
            content: Raw body. Takes precedence over json.
            json: JSON body.
            params: URL query parameters.
            endpoint: Path below the base URL, leading slash optional.
            base_url: Replaces _get_base_url() for backends serving from several hosts.
            additional_headers: Merged over the auth headers.
            raise_on_error: Turn a non-2xx status into an UpstreamError.

        Returns:
            httpx.Response: The raw response.

        Raises:
            Exception: If boot() has not been called.
            UpstreamError: On transport failure, or on a non-2xx status when raise_on_error is set.
        """
        if self._client is None:
            raise Exception("HTTP client not initialised. Call boot() before making requests.")

        url = self._build_url(endpoint, base_url)
        headers = {**self._get_auth_header(), **(additional_headers or {})}
        body: dict[str, Any] = {}
        if content is not None:
            body["content"] = content
        elif json is not None:
            body["json"] = json

        try:
            response = await self._client.request(
                method, url, headers=headers, params=params, timeout=self.timeout, **body
            )
        except httpx.HTTPError as exc:
            self.logging.error("%s %s failed: %s", method, url, exc)
            raise UpstreamError(self.get_client_type(), f"Request to {url} failed: {exc}") from exc

        self.logging.debug("%s %s -> %d", method, url, response.status_code)
        if raise_on_error and not response.is_success:
            preview = response.text[:ERROR_BODY_PREVIEW]
            self.logging.error("%s %s returned status %d: %s", method, url, response.status_code, preview)
            raise UpstreamError(
                self.get_client_type(),
                f"Request to {url} failed with status {response.status_code}",
                details=preview,
            )
        return response

    def parse_json(self, response: httpx.Response) -> dict:
        """Decode a response body that must be a JSON object.

        Raises:
            UpstreamError: If the body is not JSON or not an object (e.g. a proxy error page).
        """
        try:
            data = response.json()
        except ValueError as exc:
            preview = response.text[:ERROR_BODY_PREVIEW]
            self.logging.error("%s returned a non-JSON body: %s", response.request.url, preview)
            raise UpstreamError(
                self.get_client_type(),
                f"Response from {response.request.url} is not valid JSON",
                details=preview,
            ) from exc
        if not isinstance(data, dict):
            raise UpstreamError(
                self.get_client_type(),
                f"Response from {response.request.url} is not a JSON object",
                details=response.text[:ERROR_BODY_PREVIEW],
            )
        return data
