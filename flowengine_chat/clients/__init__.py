"""
Upstream API clients
"""

from flowengine_chat.clients.gateway import GatewayClient

__all__ = [
    "GatewayClient"
]
