"""
Base node implementation defining the interface for all nodes
"""

import time
import uuid
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional

from flowengine_chat.credentials import ChatModelCredential
from flowengine_chat.errors import ChatModelError
from flowengine_chat.models.node_models import NodeDescription, NodeItem, OptionItem
from flowengine_chat.utils.callbacks import NodeCallback

OptionLoader = Callable[[ChatModelCredential, Dict[str, Any]], Awaitable[List[OptionItem]]]

class NodeExecutionContext:
    """Host services available to a node while it runs.

    Holds the input items, the configured node parameters, the credential and
    the continue-on-failure flag. String parameters may reference fields of
    the current item with ``{field}`` placeholders.
    """

    def __init__(
        self,
        items: List[Dict[str, Any]],
        parameters: Dict[str, Any],
        credential: Optional[ChatModelCredential] = None,
        continue_on_fail: bool = False,
        run_id: Optional[str] = None
    ):
        self.items = items
        self.parameters = parameters
        self.credential = credential or ChatModelCredential()
        self.continue_on_fail = continue_on_fail
        self.run_id = run_id or str(uuid.uuid4())

    def get_input_data(self) -> List[Dict[str, Any]]:
        return self.items

    def get_credentials(self) -> ChatModelCredential:
        return self.credential

    def get_node_parameter(self, name: str, item_index: int, default: Any = None) -> Any:
        """Resolve a parameter for one item.

        String values, including those nested in dicts, have every
        ``{key}`` naming a field of the item replaced by that field's value.
        Braces cannot be escaped: literal text such as ``{x}`` is always
        substituted when the item has an ``x`` field.

        Args:
            name: Parameter name
            item_index: Position of the item the value is resolved for
            default: Value returned when the parameter is not configured

        Returns:
            Parameter value with item placeholders substituted

        Raises:
            IndexError: If ``item_index`` is outside the input items
        """
        item = self.items[item_index]
        if name not in self.parameters:
            return default
        return self._render(self.parameters[name], item)

    def _render(self, value: Any, item: Dict[str, Any]) -> Any:
        if isinstance(value, str):
            for key, content in item.items():
                placeholder = f"{{{key}}}"
                if placeholder in value:
                    value = value.replace(placeholder, str(content))
            return value
        if isinstance(value, dict):
            return {k: self._render(v, item) for k, v in value.items()}
        return value

class BaseNode(ABC):
    """Abstract base class for all nodes

    Provides:
    - Lifecycle hooks (pre_execute, post_execute)
    - Option loading through a named method table
    - Callback notification for run events
    """

    description: NodeDescription

    def __init__(self, callbacks: Optional[List[NodeCallback]] = None):
        self.callbacks = callbacks or []

    @property
    def node_name(self) -> str:
        """Get the node type's name"""
        return self.description.name

    @property
    def load_options_methods(self) -> Dict[str, OptionLoader]:
        """Option loaders keyed by method name"""
        return {}

    async def load_options(
        self,
        method: str,
        credential: ChatModelCredential,
        parameters: Optional[Dict[str, Any]] = None
    ) -> List[OptionItem]:
        """Run a named option loader.

        Raises:
            ValueError: If the node has no loader with that name
        """
        loader = self.load_options_methods.get(method)
        if loader is None:
            raise ValueError(f"Unknown option loader '{method}' for node {self.node_name}")
        return await loader(credential, parameters or {})

    async def notify(self, event: str, run_id: str, data: Dict[str, Any]) -> None:
        for callback in self.callbacks:
            await getattr(callback, event)(run_id, data)

    async def pre_execute(self, context: NodeExecutionContext) -> NodeExecutionContext:
        """Validate the context before execution.

        Raises:
            ValueError: If an input item is not a JSON object
        """
        for index, item in enumerate(context.get_input_data()):
            if not isinstance(item, dict):
                raise ValueError(f"Input item {index} must be an object")
        return context

    async def post_execute(self, results: List[NodeItem]) -> List[NodeItem]:
        """Process results after execution."""
        return results

    async def run(self, context: NodeExecutionContext) -> List[NodeItem]:
        """Execute the node with lifecycle hooks and run callbacks"""
        start_time = time.time()
        await self.notify("on_execution_start", context.run_id, {
            "node": self.node_name,
            "total_items": len(context.get_input_data())
        })

        try:
            context = await self.pre_execute(context)
            results = await self.execute(context)
            results = await self.post_execute(results)
        except (ChatModelError, ValueError) as e:
            await self.notify("on_execution_end", context.run_id, {
                "success": False,
                "duration": time.time() - start_time,
                "error": str(e)
            })
            raise

        await self.notify("on_execution_end", context.run_id, {
            "success": True,
            "duration": time.time() - start_time
        })
        return results

    @abstractmethod
    async def execute(self, context: NodeExecutionContext) -> List[NodeItem]:
        """Produce one output record per input item.

        Called by run() after pre_execute() and before post_execute().
        """
        pass
