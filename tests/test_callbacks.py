"""
Tests for the callback system implementation.
"""

import json
import logging
import pytest
from flowengine_chat.errors import MissingCredentialError
from flowengine_chat.nodes.base import NodeExecutionContext
from flowengine_chat.nodes.chat_model import ChatModelNode
from flowengine_chat.utils.callbacks import LoggingCallback, MetricsCallback

@pytest.mark.asyncio
async def test_logging_callback(caplog):
    """Test LoggingCallback functionality."""
    callback = LoggingCallback()

    with caplog.at_level(logging.INFO, logger="flowengine_chat.utils.callbacks"):
        await callback.on_execution_start("run1", {"node": "flowEngineChatModel", "total_items": 2})
        await callback.on_item_start("run1", {"item_index": 0})
        await callback.on_item_end("run1", {"item_index": 0})
        await callback.on_item_error("run1", {
            "item_index": 1,
            "error": {"kind": "EmptyCompletion", "message": "No response from LLM API"}
        })
        await callback.on_execution_end("run1", {"success": True, "duration": 1.0})

    assert "Run run1 of flowEngineChatModel started with 2 items" in caplog.text
    assert "Item 1 in run run1 failed (EmptyCompletion): No response from LLM API" in caplog.text

@pytest.mark.asyncio
async def test_metrics_callback():
    """Test MetricsCallback functionality."""
    callback = MetricsCallback()

    await callback.on_execution_start("run1", {"node": "flowEngineChatModel", "total_items": 2})
    await callback.on_item_start("run1", {"item_index": 0})
    await callback.on_item_end("run1", {
        "item_index": 0,
        "result": {"success": True, "usage": {"total_tokens": 100}}
    })
    await callback.on_item_start("run1", {"item_index": 1})
    await callback.on_item_error("run1", {
        "item_index": 1,
        "error": {"kind": "TransportError", "message": "down"}
    })
    await callback.on_execution_end("run1", {"success": True, "duration": 1.0})

    metrics = callback.get_metrics()
    run = metrics["runs"]["run1"]
    assert run["success"] is True
    assert run["duration"] >= 0
    assert run["item_count"] == 2
    assert run["items"][0]["usage"]["total_tokens"] == 100
    assert run["items"][1]["success"] is False
    assert run["items"][1]["error"]["kind"] == "TransportError"

@pytest.mark.asyncio
async def test_metrics_export(tmp_path):
    callback = MetricsCallback()
    await callback.on_execution_start("run1", {"total_items": 0})
    await callback.on_execution_end("run1", {"success": False, "error": "aborted"})

    path = tmp_path / "metrics.json"
    callback.export_metrics(str(path))

    exported = json.loads(path.read_text())
    assert exported["runs"]["run1"]["error"] == "aborted"

@pytest.mark.asyncio
async def test_node_notifies_callbacks(gateway, settings, credential):
    """Test the node reports run and item events to its callbacks"""
    gateway.completions = [
        (200, {"choices": [{"message": {"content": "ok"}, "finish_reason": "stop"}], "usage": {"total_tokens": 2}}),
        (200, {"choices": []})
    ]
    metrics = MetricsCallback()
    node = ChatModelNode(settings=settings, transport=gateway.transport, callbacks=[metrics])
    context = NodeExecutionContext(
        items=[{}, {}],
        parameters={"model": "gpt-4", "message": "hi"},
        credential=credential,
        continue_on_fail=True,
        run_id="run-42"
    )

    await node.run(context)

    run = metrics.get_metrics()["runs"]["run-42"]
    assert run["node"] == "flowEngineChatModel"
    assert run["success"] is True
    assert run["items"][0]["success"] is True
    assert run["items"][0]["usage"] == {"total_tokens": 2}
    assert run["items"][1]["error"] == {"kind": "EmptyCompletion", "message": "No response from LLM API"}

@pytest.mark.asyncio
async def test_node_reports_aborted_run(gateway, settings):
    metrics = MetricsCallback()
    node = ChatModelNode(settings=settings, transport=gateway.transport, callbacks=[metrics])
    context = NodeExecutionContext(
        items=[{}],
        parameters={"model": "gpt-4", "message": "hi"},
        run_id="run-7"
    )

    with pytest.raises(MissingCredentialError):
        await node.run(context)

    run = metrics.get_metrics()["runs"]["run-7"]
    assert run["success"] is False
    assert "API key is required" in run["error"]
