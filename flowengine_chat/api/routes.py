"""
API routes for the chat model node
"""

from functools import lru_cache
from fastapi import APIRouter, HTTPException, Depends
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from flowengine_chat.credentials import ChatModelCredential
from flowengine_chat.errors import ChatModelError, InvalidParameterError, MissingCredentialError
from flowengine_chat.models.config import AppConfig, load_config
from flowengine_chat.models.node_models import (
    CredentialTestResult,
    NodeDescription,
    NodeItem,
    OptionItem
)
from flowengine_chat.nodes.base import NodeExecutionContext
from flowengine_chat.nodes.chat_model import ChatModelNode
from flowengine_chat.utils.callbacks import LoggingCallback

router = APIRouter()

class CredentialRequest(BaseModel):
    """Request carrying the caller's API key"""
    api_key: str = ""

    @property
    def credential(self) -> ChatModelCredential:
        return ChatModelCredential(api_key=self.api_key)

class OptionsRequest(CredentialRequest):
    """Request model for option loading"""
    provider: Optional[str] = None

class ExecuteRequest(CredentialRequest):
    """Request model for node execution"""
    items: List[Dict[str, Any]] = Field(default_factory=lambda: [{}])
    parameters: Dict[str, Any] = Field(default_factory=dict)
    continue_on_fail: bool = False

class ExecuteResponse(BaseModel):
    """Output records in input order"""
    items: List[NodeItem]

@lru_cache
def get_app_config() -> AppConfig:
    return load_config()

def get_chat_model_node(config: AppConfig = Depends(get_app_config)) -> ChatModelNode:
    """Build the node used by a request"""
    return ChatModelNode(settings=config.gateway, callbacks=[LoggingCallback()])

def _status_for(error: ChatModelError) -> int:
    if isinstance(error, (InvalidParameterError, MissingCredentialError)):
        return 400
    return 502

@router.get("/nodes/chat-model", response_model=NodeDescription)
async def describe_chat_model(node: ChatModelNode = Depends(get_chat_model_node)):
    """Describe the chat model node"""
    return node.description

@router.post("/credentials/test", response_model=CredentialTestResult)
async def check_credentials(
    request: CredentialRequest,
    node: ChatModelNode = Depends(get_chat_model_node)
):
    """Check an API key against the gateway"""
    return await request.credential.check_connection(node.settings, node.transport)

@router.post(
    "/nodes/chat-model/options/{method}",
    response_model=List[OptionItem],
    response_model_exclude_none=True
)
async def load_options(
    method: str,
    request: OptionsRequest,
    node: ChatModelNode = Depends(get_chat_model_node)
):
    """Run one of the node's option loaders"""
    try:
        return await node.load_options(
            method,
            request.credential,
            {"provider": request.provider}
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))

@router.post("/nodes/chat-model/execute", response_model=ExecuteResponse)
async def execute_chat_model(
    request: ExecuteRequest,
    node: ChatModelNode = Depends(get_chat_model_node)
):
    """Execute the chat model node over the given items"""
    context = NodeExecutionContext(
        items=request.items,
        parameters=request.parameters,
        credential=request.credential,
        continue_on_fail=request.continue_on_fail
    )
    try:
        results = await node.run(context)
    except ChatModelError as e:
        raise HTTPException(status_code=_status_for(e), detail=e.to_dict())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ExecuteResponse(items=results)
