"""
Test configuration and fixtures for the FlowEngine Chat Model test suite.
"""

import json
import pytest
import httpx
from typing import Any, Dict, List, Optional
from flowengine_chat.credentials import ChatModelCredential
from flowengine_chat.models.config import GatewaySettings
from flowengine_chat.nodes.chat_model import ChatModelNode

MODELS_PATH = "/api/v1/litellm/models"
CHAT_PATH = "/api/v1/litellm/v1/chat/completions"

class FakeGateway:
    """In-memory stand-in for the gateway behind an httpx.MockTransport.

    ``models`` and ``completions`` hold ``(status, json)`` pairs, raw
    ``httpx.Response`` factories or ``CONNECT_ERROR``. Completions are served
    in order; the last one repeats.
    """

    CONNECT_ERROR = "connect-error"

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.models: Any = (200, {"data": []})
        self.completions: List[Any] = [(200, {
            "choices": [{"message": {"role": "assistant", "content": "hi"}, "finish_reason": "stop"}],
            "usage": {"total_tokens": 5}
        })]

    def _respond(self, canned: Any, request: httpx.Request) -> httpx.Response:
        if canned == self.CONNECT_ERROR:
            raise httpx.ConnectError("Connection refused", request=request)
        if callable(canned):
            return canned(request)
        status, payload = canned
        return httpx.Response(status, json=payload)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == MODELS_PATH and request.method == "GET":
            return self._respond(self.models, request)
        if request.url.path == CHAT_PATH and request.method == "POST":
            canned = self.completions.pop(0) if len(self.completions) > 1 else self.completions[0]
            return self._respond(canned, request)
        return httpx.Response(404, json={"error": {"message": "Not found"}})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def chat_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == CHAT_PATH]

    @property
    def chat_bodies(self) -> List[Dict[str, Any]]:
        return [json.loads(r.content) for r in self.chat_requests]

    @property
    def last_request(self) -> Optional[httpx.Request]:
        return self.requests[-1] if self.requests else None

@pytest.fixture
def gateway() -> FakeGateway:
    """Create a fake gateway with an empty model listing."""
    return FakeGateway()

@pytest.fixture
def model_listing() -> Dict[str, Any]:
    """Model listing with one entry per provider field."""
    return {
        "data": [
            {"model_name": "gpt-4", "model_info": {"provider": "openai"}},
            {"model_name": "claude-3", "model_info": {"litellm_provider": "anthropic"}}
        ]
    }

@pytest.fixture
def settings() -> GatewaySettings:
    """Gateway settings pointing at the fake host."""
    return GatewaySettings(base_url="https://gateway.test", timeout=5.0)

@pytest.fixture
def credential() -> ChatModelCredential:
    """Credential with a test API key."""
    return ChatModelCredential(api_key="fe-test-key")

@pytest.fixture
def node(gateway: FakeGateway, settings: GatewaySettings) -> ChatModelNode:
    """Chat model node wired to the fake gateway."""
    return ChatModelNode(settings=settings, transport=gateway.transport)
