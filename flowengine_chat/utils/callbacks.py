"""
Callback handlers for node execution events.

This module provides callback handlers for monitoring node runs:

1. NodeCallback: Abstract base class defining the callback interface
2. LoggingCallback: Basic logging for production use
3. MetricsCallback: Timing, usage and failure collection per run and item
"""

from abc import ABC, abstractmethod
from typing import Dict, Any
import logging
import json
import time

logger = logging.getLogger(__name__)

class NodeCallback(ABC):
    """Abstract base class for node callback handlers.

    Handlers are registered on a node and notified about the run as a whole
    and about each input item. ``run_id`` identifies one execution.
    """

    @abstractmethod
    async def on_execution_start(self, run_id: str, data: Dict[str, Any]) -> None:
        """Called when a node run starts."""
        pass

    @abstractmethod
    async def on_execution_end(self, run_id: str, data: Dict[str, Any]) -> None:
        """Called when a node run ends, successfully or not."""
        pass

    @abstractmethod
    async def on_item_start(self, run_id: str, data: Dict[str, Any]) -> None:
        """Called before an item is sent upstream."""
        pass

    @abstractmethod
    async def on_item_end(self, run_id: str, data: Dict[str, Any]) -> None:
        """Called when an item produced a success record."""
        pass

    @abstractmethod
    async def on_item_error(self, run_id: str, data: Dict[str, Any]) -> None:
        """Called when an item failed."""
        pass

class LoggingCallback(NodeCallback):
    """Callback handler that logs run and item events."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger(__name__)
        self.log_level = log_level

    async def on_execution_start(self, run_id: str, data: Dict[str, Any]) -> None:
        self.logger.log(
            self.log_level,
            f"Run {run_id} of {data.get('node', 'node')} started with {data.get('total_items', 0)} items"
        )

    async def on_execution_end(self, run_id: str, data: Dict[str, Any]) -> None:
        duration = data.get('duration', 0)
        if data.get('success', False):
            self.logger.log(
                self.log_level,
                f"Run {run_id} completed in {duration:.2f} seconds"
            )
        else:
            self.logger.log(
                logging.ERROR,
                f"Run {run_id} aborted after {duration:.2f} seconds: {data.get('error', 'Unknown error')}"
            )

    async def on_item_start(self, run_id: str, data: Dict[str, Any]) -> None:
        self.logger.log(self.log_level, f"Item {data.get('item_index')} in run {run_id} started")

    async def on_item_end(self, run_id: str, data: Dict[str, Any]) -> None:
        self.logger.log(self.log_level, f"Item {data.get('item_index')} in run {run_id} succeeded")

    async def on_item_error(self, run_id: str, data: Dict[str, Any]) -> None:
        error = data.get('error', {})
        self.logger.log(
            logging.ERROR,
            f"Item {data.get('item_index')} in run {run_id} failed "
            f"({error.get('kind', 'UnknownError')}): {error.get('message', 'Unknown error')}"
        )

class MetricsCallback(NodeCallback):
    """Callback handler that collects execution metrics."""

    def __init__(self):
        self.metrics = {
            'runs': {}
        }

    async def on_execution_start(self, run_id: str, data: Dict[str, Any]) -> None:
        self.metrics['runs'][run_id] = {
            'start_time': time.time(),
            'node': data.get('node'),
            'item_count': data.get('total_items', 0),
            'items': {}
        }

    async def on_execution_end(self, run_id: str, data: Dict[str, Any]) -> None:
        if run_id in self.metrics['runs']:
            run_metrics = self.metrics['runs'][run_id]
            run_metrics['end_time'] = time.time()
            run_metrics['duration'] = run_metrics['end_time'] - run_metrics['start_time']
            run_metrics['success'] = data.get('success', False)

            if not run_metrics['success']:
                run_metrics['error'] = data.get('error', 'Unknown error')

    async def on_item_start(self, run_id: str, data: Dict[str, Any]) -> None:
        if run_id in self.metrics['runs']:
            self.metrics['runs'][run_id]['items'][data.get('item_index')] = {
                'start_time': time.time()
            }

    def _finish_item(self, run_id: str, item_index: Any) -> Dict[str, Any]:
        items = self.metrics['runs'].get(run_id, {}).get('items', {})
        item_metrics = items.setdefault(item_index, {'start_time': time.time()})
        item_metrics['end_time'] = time.time()
        item_metrics['duration'] = item_metrics['end_time'] - item_metrics['start_time']
        return item_metrics

    async def on_item_end(self, run_id: str, data: Dict[str, Any]) -> None:
        if run_id in self.metrics['runs']:
            item_metrics = self._finish_item(run_id, data.get('item_index'))
            item_metrics['success'] = True
            result = data.get('result') or {}
            if result.get('usage') is not None:
                item_metrics['usage'] = result['usage']

    async def on_item_error(self, run_id: str, data: Dict[str, Any]) -> None:
        if run_id in self.metrics['runs']:
            item_metrics = self._finish_item(run_id, data.get('item_index'))
            item_metrics['success'] = False
            item_metrics['error'] = data.get('error', {})

    def get_metrics(self) -> Dict[str, Any]:
        """Get the collected metrics."""
        return self.metrics

    def export_metrics(self, filepath: str) -> None:
        """Export metrics to a JSON file."""
        try:
            with open(filepath, 'w') as f:
                json.dump(self.metrics, f, indent=2, default=str)
        except OSError as e:
            logger.error(f"Failed to export metrics: {e}")
