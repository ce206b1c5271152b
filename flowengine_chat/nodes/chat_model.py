"""
FlowEngine Chat Model node: option loaders and per-item chat completion
"""

import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional
import httpx
import openai
from openai.types.chat import ChatCompletion
from pydantic import ValidationError

from flowengine_chat.clients.gateway import GatewayClient
from flowengine_chat.credentials import ChatModelCredential
from flowengine_chat.errors import (
    ChatModelError,
    EmptyCompletionError,
    GatewayErrorHandler,
    InvalidParameterError,
    MissingCredentialError,
    UnexpectedShapeError
)
from flowengine_chat.models.config import GatewaySettings
from flowengine_chat.models.node_models import (
    ChatCompletionRequest,
    ChatMessage,
    ChatModelParameters,
    ModelDescriptor,
    NodeDescription,
    NodeExecutionRecord,
    NodeItem,
    OptionItem
)
from flowengine_chat.nodes.base import BaseNode, NodeExecutionContext, OptionLoader
from flowengine_chat.utils.callbacks import NodeCallback

logger = logging.getLogger(__name__)

ALL_PROVIDERS = "all"

def all_providers_option() -> OptionItem:
    return OptionItem(name="All Providers", value=ALL_PROVIDERS)

def credentials_required_option(target: str) -> OptionItem:
    return OptionItem(
        name="API Key Required",
        value="",
        description=f"Set up FlowEngine Chat Model API credentials to load {target}"
    )

def error_loading_models_option() -> OptionItem:
    return OptionItem(
        name="Error Loading Models",
        value="",
        description="Failed to fetch available models from FlowEngine"
    )

def provider_display_name(provider: str) -> str:
    """Upper-case the first character only, ``openai`` -> ``Openai``"""
    return provider[:1].upper() + provider[1:]

def option_sort_key(option: OptionItem):
    """Case-insensitive order; ties and punctuation fall back to code points"""
    return (option.name.casefold(), option.name)

async def load_with_fallback(
    load: Callable[[], Awaitable[List[OptionItem]]],
    fallback: Callable[[], List[OptionItem]],
    label: str
) -> List[OptionItem]:
    """Run an option loader, returning the fallback list if it fails.

    Transport failures, undecodable bodies and unexpected listing shapes
    all degrade to ``fallback()``; the failure is logged, never raised.

    Args:
        load: Loader coroutine factory
        fallback: Builds the options returned on failure
        label: What is being loaded, for the log message

    Returns:
        Loaded or fallback options
    """
    try:
        return await load()
    except (ChatModelError, httpx.HTTPError, ValueError) as e:
        logger.warning(
            f"Loading {label} failed ({GatewayErrorHandler.classify_error(e)}): "
            f"{GatewayErrorHandler.format_error_message(e)}"
        )
        return fallback()

class ChatModelNode(BaseNode):
    """Node sending one chat completion per input item through the gateway"""

    description = NodeDescription(
        name="flowEngineChatModel",
        display_name="FlowEngine Chat Model",
        version=1,
        group=["transform"],
        subtitle='={{$parameter["model"]}}',
        description="Access 100+ AI models (OpenAI, Anthropic, Google, Mistral, etc.) via FlowEngine",
        credentials=[ChatModelCredential.name],
        usable_as_tool=True,
        documentation_url=ChatModelCredential.documentation_url
    )

    def __init__(
        self,
        settings: Optional[GatewaySettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        callbacks: Optional[List[NodeCallback]] = None
    ):
        """Initialize the chat model node.

        Args:
            settings: Gateway settings, defaults apply when omitted
            transport: Optional httpx transport shared by every gateway call
            callbacks: Optional list of node callbacks
        """
        super().__init__(callbacks)
        self.settings = settings or GatewaySettings()
        self.transport = transport
        self.execution_record = NodeExecutionRecord(node_name=self.node_name)

    def gateway(self, credential: ChatModelCredential) -> GatewayClient:
        return GatewayClient(credential, self.settings, self.transport)

    @property
    def load_options_methods(self) -> Dict[str, OptionLoader]:
        return {
            "getProviders": lambda credential, parameters: self.get_providers(credential),
            "getModels": lambda credential, parameters: self.get_models(
                credential, parameters.get("provider") or ""
            ),
        }

    async def fetch_model_descriptors(self, credential: ChatModelCredential) -> List[ModelDescriptor]:
        """Fetch and parse the gateway's model listing.

        Entries that are not objects or carry mistyped fields are skipped.

        Raises:
            UnexpectedShapeError: If the listing has no ``data`` array
            httpx.HTTPError: On transport failure or a non-2xx status
            ValueError: If the body is not valid JSON
        """
        async with self.gateway(credential) as gateway:
            payload = await gateway.list_models()

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            raise UnexpectedShapeError("Model listing response has no 'data' array")

        descriptors = []
        for entry in data:
            try:
                descriptors.append(ModelDescriptor.model_validate(entry))
            except ValidationError:
                logger.debug(f"Skipping malformed model entry: {entry!r}")
        return descriptors

    async def get_providers(self, credential: ChatModelCredential) -> List[OptionItem]:
        """List distinct providers, preceded by ``All Providers``"""
        if not credential.has_api_key:
            return [credentials_required_option("providers")]

        async def load() -> List[OptionItem]:
            descriptors = await self.fetch_model_descriptors(credential)
            providers = sorted({d.provider for d in descriptors if d.provider})
            return [all_providers_option()] + [
                OptionItem(name=provider_display_name(p), value=p) for p in providers
            ]

        return await load_with_fallback(load, lambda: [all_providers_option()], "providers")

    async def get_models(self, credential: ChatModelCredential, provider: str = "") -> List[OptionItem]:
        """List models, optionally restricted to one provider"""
        if not credential.has_api_key:
            return [credentials_required_option("models")]

        async def load() -> List[OptionItem]:
            descriptors = await self.fetch_model_descriptors(credential)
            if provider and provider != ALL_PROVIDERS:
                descriptors = [d for d in descriptors if d.provider == provider]

            options = [
                OptionItem(
                    name=d.model_name,
                    value=d.model_name,
                    description=f"Provider: {d.provider}" if d.provider else None
                )
                for d in descriptors
                if d.model_name
            ]
            return sorted(options, key=option_sort_key)

        return await load_with_fallback(load, lambda: [error_loading_models_option()], "models")

    def get_parameters(self, context: NodeExecutionContext, item_index: int) -> ChatModelParameters:
        """Resolve and validate the node parameters for one item.

        Raises:
            InvalidParameterError: If a parameter is missing or out of range
        """
        raw = {
            "provider": context.get_node_parameter("provider", item_index, ""),
            "model": context.get_node_parameter("model", item_index),
            "message": context.get_node_parameter("message", item_index),
            "options": context.get_node_parameter("options", item_index, {}),
        }
        try:
            return ChatModelParameters.model_validate(raw)
        except ValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            raise InvalidParameterError(
                f"Invalid node parameters: {details}", item_index=item_index
            ) from e

    def build_messages(self, parameters: ChatModelParameters) -> List[ChatMessage]:
        """Optional system message, then exactly one user message"""
        messages = []
        if parameters.options.system_message:
            messages.append(ChatMessage(role="system", content=parameters.options.system_message))
        messages.append(ChatMessage(role="user", content=parameters.message))
        return messages

    def build_request(self, parameters: ChatModelParameters) -> ChatCompletionRequest:
        return ChatCompletionRequest(
            model=parameters.model,
            messages=self.build_messages(parameters),
            temperature=parameters.options.temperature,
            max_tokens=parameters.options.token_limit
        )

    def map_completion(self, completion: ChatCompletion, model: str, item_index: int) -> NodeItem:
        """Turn a completion into a success record.

        Raises:
            EmptyCompletionError: If the completion has no choices
            UnexpectedShapeError: If the first choice carries no message
        """
        choices = getattr(completion, "choices", None)
        if not isinstance(choices, list) or not choices:
            raise EmptyCompletionError(item_index=item_index)

        choice = choices[0]
        message = getattr(choice, "message", None)
        if message is None:
            raise UnexpectedShapeError("Completion choice has no message", item_index=item_index)
        usage = completion.usage.model_dump(exclude_unset=True) if completion.usage is not None else None

        return NodeItem.success(
            item_index,
            response=getattr(message, "content", None),
            model=model,
            usage=usage,
            finish_reason=getattr(choice, "finish_reason", None)
        )

    async def execute_item(self, context: NodeExecutionContext, item_index: int) -> NodeItem:
        """Send one item's chat completion and map the result.

        Raises:
            ChatModelError: Any failure of this item
        """
        credential = context.get_credentials()
        if not credential.has_api_key:
            raise MissingCredentialError(item_index=item_index)

        parameters = self.get_parameters(context, item_index)
        request = self.build_request(parameters)

        try:
            async with self.gateway(credential) as gateway:
                completion = await gateway.create_chat_completion(request)
        except (openai.APIError, httpx.HTTPError) as e:
            raise GatewayErrorHandler.wrap(e, item_index) from e

        return self.map_completion(completion, parameters.model, item_index)

    async def execute(self, context: NodeExecutionContext) -> List[NodeItem]:
        """Process items sequentially in input order.

        With continue-on-failure each failed item becomes a failure record;
        otherwise the first failure is raised and later items are not sent.
        """
        results = []

        for item_index in range(len(context.get_input_data())):
            await self.notify("on_item_start", context.run_id, {"item_index": item_index})

            try:
                result = await self.execute_item(context, item_index)
            except ChatModelError as e:
                e.item_index = item_index
                self._update_execution_stats(None, None)
                logger.error(f"Item {item_index} failed ({e.kind}): {e.message}")
                await self.notify("on_item_error", context.run_id, {
                    "item_index": item_index,
                    "error": {"kind": e.kind, "message": e.message}
                })
                if context.continue_on_fail:
                    results.append(NodeItem.failure(item_index, e.message))
                    continue
                raise

            self._update_execution_stats(result, result.json_data.get("model"))
            logger.debug(f"Item {item_index} completed with finish reason {result.json_data.get('finishReason')}")
            await self.notify("on_item_end", context.run_id, {
                "item_index": item_index,
                "result": result.json_data
            })
            results.append(result)

        return results

    def _update_execution_stats(self, result: Optional[NodeItem], model: Optional[str]) -> None:
        """Update node execution statistics"""
        record = self.execution_record
        record.executions += 1
        record.last_executed = datetime.now(timezone.utc)

        if result is None:
            record.failures += 1
            return

        record.successes += 1
        usage: Dict[str, Any] = result.json_data.get("usage") or {}
        tokens = usage.get("total_tokens")
        if model and isinstance(tokens, int):
            record.token_usage[model] = record.token_usage.get(model, 0) + tokens
