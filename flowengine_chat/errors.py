"""
Error taxonomy for the chat model node and gateway calls
"""

from typing import Optional
import httpx
import openai

MISSING_API_KEY_MESSAGE = (
    "FlowEngine Chat Model API key is required. "
    "Get your API key from flowengine.cloud/settings."
)
EMPTY_COMPLETION_MESSAGE = "No response from LLM API"

class ChatModelError(Exception):
    """Base class for failures raised while handling a node item"""

    kind = "UnknownError"

    def __init__(self, message: str, item_index: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.item_index = item_index

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message, "item_index": self.item_index}

class MissingCredentialError(ChatModelError):
    """No API key is configured"""
    kind = "MissingCredential"

    def __init__(self, message: str = MISSING_API_KEY_MESSAGE, item_index: Optional[int] = None):
        super().__init__(message, item_index)

class EmptyCompletionError(ChatModelError):
    """The gateway answered without any choices"""
    kind = "EmptyCompletion"

    def __init__(self, message: str = EMPTY_COMPLETION_MESSAGE, item_index: Optional[int] = None):
        super().__init__(message, item_index)

class TransportError(ChatModelError):
    """Network failure or non-2xx status from the gateway"""
    kind = "TransportError"

class UnexpectedShapeError(ChatModelError):
    """A gateway response did not have the expected JSON shape"""
    kind = "UnexpectedShape"

class InvalidParameterError(ChatModelError):
    """A node parameter failed validation"""
    kind = "InvalidParameters"

class GatewayErrorHandler:
    """Centralized classification of gateway call failures"""

    @classmethod
    def status_code(cls, error: Exception) -> Optional[int]:
        if isinstance(error, openai.APIStatusError):
            return error.status_code
        if isinstance(error, httpx.HTTPStatusError):
            return error.response.status_code
        return None

    @classmethod
    def classify_error(cls, error: Exception) -> str:
        """Classify an exception into one of the error kinds.

        Args:
            error: The exception to classify

        Returns:
            Error kind string
        """
        if isinstance(error, ChatModelError):
            return error.kind
        if isinstance(error, (openai.APIError, httpx.HTTPError)):
            return TransportError.kind
        if isinstance(error, ValueError):
            # Undecodable JSON bodies surface as ValueError
            return UnexpectedShapeError.kind
        return ChatModelError.kind

    @classmethod
    def format_error_message(cls, error: Exception) -> str:
        """Create user-friendly error messages.

        Args:
            error: The exception to format

        Returns:
            User-friendly error message
        """
        if isinstance(error, ChatModelError):
            return error.message

        status = cls.status_code(error)
        if status in (401, 403):
            return "Authentication failed. Please check your FlowEngine API key."
        elif status == 429:
            return "Rate limit exceeded. Please adjust your request rate."
        elif isinstance(error, (openai.APITimeoutError, httpx.TimeoutException)):
            return "Request timed out. Please try again."
        elif isinstance(error, (openai.APIConnectionError, httpx.TransportError)):
            return "Could not reach the FlowEngine gateway."

        return str(error)

    @classmethod
    def wrap(cls, error: Exception, item_index: Optional[int] = None) -> ChatModelError:
        """Convert a transport exception into a ChatModelError"""
        if isinstance(error, ChatModelError):
            if error.item_index is None:
                error.item_index = item_index
            return error
        return TransportError(cls.format_error_message(error), item_index=item_index)
