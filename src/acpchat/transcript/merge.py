"""Tool call merge engine.

Hides how a partial tool call update is folded into an existing record.
A field counts as present when the update model had it explicitly set, so
an explicit ``None``, ``""`` or ``False`` still overwrites.
"""

from typing import Any

import structlog

from .models import ToolCallContent, ToolCallDiff

logger = structlog.get_logger(__name__)

# Fields following the update-wins-if-present policy
_SCALAR_FIELDS = ("title", "kind", "status", "locations", "permission_request")


def merge_tool_call(existing: ToolCallContent, update: Any) -> ToolCallContent:
    """Merge a partial tool call update into an existing tool call.

    A diff item is a full snapshot of a file edit, so an update carrying at
    least one diff drops every earlier diff; other items accumulate.

    Args:
        existing: The tool call currently in the transcript
        update: The incoming partial tool call

    Returns:
        The merged tool call, or ``existing`` unchanged when ``update`` is
        not a tool call
    """
    if not isinstance(update, ToolCallContent):
        logger.debug(
            "tool_call_merge_ignored",
            update_type=getattr(update, "type", None),
        )
        return existing

    present = update.model_fields_set
    changes: dict[str, Any] = {"tool_call_id": update.tool_call_id}

    for name in _SCALAR_FIELDS:
        if name in present:
            changes[name] = getattr(update, name)

    if "content" in present:
        merged_items = tuple(existing.content or ())
        new_items = tuple(update.content or ())
        if any(isinstance(item, ToolCallDiff) for item in new_items):
            merged_items = tuple(
                item for item in merged_items if not isinstance(item, ToolCallDiff)
            )
        changes["content"] = merged_items + new_items

    return existing.model_copy(update=changes)
