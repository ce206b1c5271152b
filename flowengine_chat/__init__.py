"""
FlowEngine Chat Model - workflow node for the FlowEngine LLM gateway
"""

from flowengine_chat.credentials import ChatModelCredential
from flowengine_chat.nodes.chat_model import ChatModelNode

__version__ = "1.0.0"

__all__ = [
    "ChatModelCredential",
    "ChatModelNode"
]
