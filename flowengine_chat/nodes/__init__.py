"""
Node implementations
"""

from flowengine_chat.nodes.base import BaseNode, NodeExecutionContext
from flowengine_chat.nodes.chat_model import ChatModelNode

__all__ = [
    "BaseNode",
    "NodeExecutionContext",
    "ChatModelNode"
]
