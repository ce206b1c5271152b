"""
Credential definition for the FlowEngine Chat Model API
"""

import logging
from typing import ClassVar, Dict, Optional
import httpx
from pydantic import BaseModel, Field, ConfigDict

from flowengine_chat.clients.gateway import GatewayClient
from flowengine_chat.errors import GatewayErrorHandler, MISSING_API_KEY_MESSAGE
from flowengine_chat.models.config import GatewaySettings
from flowengine_chat.models.node_models import CredentialTestResult

logger = logging.getLogger(__name__)

class ChatModelCredential(BaseModel):
    """API key credential sent as a bearer token"""

    name: ClassVar[str] = "flowEngineChatModelApi"
    display_name: ClassVar[str] = "FlowEngine Chat Model API"
    documentation_url: ClassVar[str] = "https://flowengine.cloud/api-docs"

    api_key: str = Field(
        "",
        repr=False,
        description="FlowEngine API key from flowengine.cloud/settings"
    )

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    def authenticate(self, headers: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        """Return a copy of ``headers`` with the bearer Authorization header added"""
        decorated = dict(headers or {})
        decorated["Authorization"] = f"Bearer {self.api_key}"
        return decorated

    async def check_connection(
        self,
        settings: Optional[GatewaySettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> CredentialTestResult:
        """Verify the key against the gateway's model listing.

        Succeeds iff the gateway answers with a non-error HTTP status.
        Failures are reported in the result rather than raised.

        Args:
            settings: Gateway settings
            transport: Optional httpx transport, used by tests

        Returns:
            Test outcome
        """
        if not self.has_api_key:
            return CredentialTestResult(status="Error", message=MISSING_API_KEY_MESSAGE)

        try:
            async with GatewayClient(self, settings, transport) as gateway:
                status = await gateway.ping()
        except httpx.HTTPError as e:
            logger.warning(f"Credential test failed: {GatewayErrorHandler.classify_error(e)}")
            return CredentialTestResult(
                status="Error",
                message=GatewayErrorHandler.format_error_message(e)
            )

        logger.debug(f"Credential test succeeded with status {status}")
        return CredentialTestResult(status="OK", message="Connection successful")
