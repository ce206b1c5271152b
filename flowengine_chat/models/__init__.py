"""
Data models and configuration
"""

from flowengine_chat.models.config import AppConfig, GatewaySettings, load_config
from flowengine_chat.models.node_models import (
    ChatCompletionRequest,
    ChatMessage,
    ChatModelOptions,
    ChatModelParameters,
    CredentialTestResult,
    ModelDescriptor,
    NodeDescription,
    NodeExecutionRecord,
    NodeItem,
    OptionItem
)

__all__ = [
    "AppConfig",
    "GatewaySettings",
    "load_config",
    "ChatCompletionRequest",
    "ChatMessage",
    "ChatModelOptions",
    "ChatModelParameters",
    "CredentialTestResult",
    "ModelDescriptor",
    "NodeDescription",
    "NodeExecutionRecord",
    "NodeItem",
    "OptionItem"
]
