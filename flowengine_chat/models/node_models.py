"""
Data models for the chat model node, its options and its output records
"""

from typing import Dict, List, Optional, Any, Literal
from datetime import datetime
from pydantic import BaseModel, Field, field_validator, ConfigDict

NO_TOKEN_LIMIT = -1

class ModelInfo(BaseModel):
    """Provider hints attached to a gateway model entry"""
    provider: Optional[str] = None
    litellm_provider: Optional[str] = None

    model_config = ConfigDict(extra="allow")

class ModelDescriptor(BaseModel):
    """One entry of the gateway's model listing"""
    model_name: Optional[str] = None
    model_info: ModelInfo = Field(default_factory=ModelInfo)

    model_config = ConfigDict(extra="allow", protected_namespaces=())

    @field_validator('model_info', mode='before')
    @classmethod
    def default_model_info(cls, v: Any) -> Any:
        """Treat a missing or non-object model_info as empty"""
        return v if isinstance(v, dict) else {}

    @property
    def provider(self) -> Optional[str]:
        """Resolved provider: ``provider`` wins over ``litellm_provider``"""
        return self.model_info.provider or self.model_info.litellm_provider or None

class OptionItem(BaseModel):
    """Selectable option returned by an option loader"""
    name: str
    value: str
    description: Optional[str] = None

class ChatModelOptions(BaseModel):
    """Optional generation settings"""
    temperature: Optional[float] = Field(None, ge=0.0, le=2.0, description="Sampling temperature")
    max_tokens: Optional[int] = Field(
        None,
        alias="maxTokens",
        le=32768,
        description="Maximum tokens to generate, -1 for no limit"
    )
    system_message: Optional[str] = Field(
        None,
        alias="systemMessage",
        description="System message setting the assistant's behavior"
    )

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @property
    def token_limit(self) -> Optional[int]:
        """Token limit to send upstream, None when unset"""
        if self.max_tokens is None or self.max_tokens == NO_TOKEN_LIMIT:
            return None
        return self.max_tokens

class ChatModelParameters(BaseModel):
    """Node parameters resolved for a single item"""
    provider: str = Field("", description="Provider filter, not sent upstream")
    model: str = Field(..., min_length=1, description="Gateway model identifier")
    message: str = Field(..., min_length=1, description="Prompt sent as the user message")
    options: ChatModelOptions = Field(default_factory=ChatModelOptions)

    model_config = ConfigDict(extra="forbid", protected_namespaces=())

    @field_validator('provider', mode='before')
    @classmethod
    def default_provider(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator('options', mode='before')
    @classmethod
    def default_options(cls, v: Any) -> Any:
        return {} if v is None else v

class ChatMessage(BaseModel):
    """Single chat message"""
    role: Literal["system", "user", "assistant"]
    content: str

class ChatCompletionRequest(BaseModel):
    """Body of a chat completion call"""
    model: str
    messages: List[ChatMessage]
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None

    model_config = ConfigDict(protected_namespaces=())

    def to_body(self) -> Dict[str, Any]:
        """JSON body with unset keys left out"""
        return self.model_dump(exclude_none=True)

class NodeItem(BaseModel):
    """Output record paired with the input item it came from"""
    json_data: Dict[str, Any] = Field(..., alias="json", description="Record payload")
    paired_item: int = Field(..., ge=0, description="Index of the originating input item")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def success(
        cls,
        item_index: int,
        response: Optional[str],
        model: str,
        usage: Optional[Dict[str, Any]],
        finish_reason: Optional[str]
    ) -> "NodeItem":
        return cls(
            json={
                "success": True,
                "response": response,
                "model": model,
                "usage": usage,
                "finishReason": finish_reason,
            },
            paired_item=item_index,
        )

    @classmethod
    def failure(cls, item_index: int, error: str) -> "NodeItem":
        return cls(json={"success": False, "error": error}, paired_item=item_index)

    @property
    def succeeded(self) -> bool:
        return bool(self.json_data.get("success"))

class NodeDescription(BaseModel):
    """Static identity of a node type"""
    name: str = Field(..., description="Internal node type name")
    display_name: str = Field(..., description="Name shown to users")
    version: int = Field(1, ge=1, description="Node type version")
    group: List[str] = Field(default_factory=list)
    subtitle: Optional[str] = None
    description: Optional[str] = None
    credentials: List[str] = Field(default_factory=list, description="Required credential types")
    usable_as_tool: bool = False
    documentation_url: Optional[str] = None

class NodeExecutionRecord(BaseModel):
    """Execution statistics and historical data"""
    node_name: str
    executions: int = Field(0, ge=0, description="Total item attempts")
    successes: int = Field(0, ge=0, description="Successful items")
    failures: int = Field(0, ge=0, description="Failed items")
    last_executed: Optional[datetime] = None
    token_usage: Dict[str, int] = Field(default_factory=dict,
                                      description="Total tokens by model")

class CredentialTestResult(BaseModel):
    """Outcome of a credential connectivity check"""
    status: Literal["OK", "Error"]
    message: str
