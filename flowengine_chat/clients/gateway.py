"""
HTTP client for the FlowEngine LiteLLM gateway
"""

import logging
from typing import Any, Dict, Optional, TYPE_CHECKING
import httpx
from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion

from flowengine_chat.models.config import GatewaySettings
from flowengine_chat.models.node_models import ChatCompletionRequest

if TYPE_CHECKING:
    from flowengine_chat.credentials import ChatModelCredential

logger = logging.getLogger(__name__)

class GatewayClient:
    """Async client for the gateway's model listing and chat completion endpoints.

    One ``httpx.AsyncClient`` is shared by the raw listing calls and the
    OpenAI SDK, so a single transport (and timeout) governs every request.
    Use as an async context manager to release the connection pool.
    """

    def __init__(
        self,
        credential: "ChatModelCredential",
        settings: Optional[GatewaySettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """Initialize the client.

        Args:
            credential: Credential holding the API key
            settings: Gateway settings, defaults apply when omitted
            transport: Optional httpx transport, used by tests
        """
        self.credential = credential
        self.settings = settings or GatewaySettings()
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None
        self._client: Optional[AsyncOpenAI] = None

    async def __aenter__(self) -> "GatewayClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Lazily created HTTP client"""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                transport=self._transport,
                timeout=httpx.Timeout(self.settings.timeout)
            )
        return self._http_client

    @property
    def client(self) -> AsyncOpenAI:
        """OpenAI SDK client bound to the gateway's OpenAI-compatible root"""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.credential.api_key,
                base_url=self.settings.chat_base_url,
                timeout=self.settings.timeout,
                max_retries=0,
                http_client=self.http_client
            )
        return self._client

    async def _get_models_response(self) -> httpx.Response:
        headers = self.credential.authenticate({"Accept": "application/json"})
        response = await self.http_client.get(self.settings.models_url, headers=headers)
        response.raise_for_status()
        return response

    async def ping(self) -> int:
        """Request the model listing and return the HTTP status.

        Raises:
            httpx.HTTPError: On transport failure or a non-2xx status
        """
        response = await self._get_models_response()
        return response.status_code

    async def list_models(self) -> Any:
        """Fetch the raw model listing JSON.

        Raises:
            httpx.HTTPError: On transport failure or a non-2xx status
            ValueError: If the body is not valid JSON
        """
        response = await self._get_models_response()
        return response.json()

    async def create_chat_completion(self, request: ChatCompletionRequest) -> ChatCompletion:
        """Send a chat completion request.

        Args:
            request: Completion request; unset optional fields are not sent

        Returns:
            Parsed completion

        Raises:
            openai.APIError: On transport failure or a non-2xx status
        """
        body: Dict[str, Any] = request.to_body()
        logger.debug(f"POST {self.settings.chat_completions_url} model={request.model}")
        return await self.client.chat.completions.create(**body)

    async def aclose(self) -> None:
        """Close the underlying HTTP client"""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
            self._client = None
