"""Text formatting utilities for the CLI.

Hides how transcript snapshots are turned into Rich renderables. Agent text
is always wrapped in ``Text`` so square brackets are never read as markup.
"""

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..transcript.models import (
    AgentThoughtContent,
    ChatMessage,
    ChatState,
    ContentBlock,
    ImageContent,
    PlanContent,
    Role,
    TextContent,
    TextWithContextContent,
    ToolCallContent,
    ToolCallDiff,
    ToolCallOutput,
    ToolCallTerminal,
)

MAX_OUTPUT_PREVIEW = 500  # Characters of tool output shown per item

_STATUS_STYLES = {
    "pending": "yellow",
    "in_progress": "cyan",
    "completed": "green",
    "failed": "red",
}


def _truncate(text: str, limit: int = MAX_OUTPUT_PREVIEW) -> str:
    if len(text) > limit:
        return text[:limit] + "\n... (output truncated)"
    return text


def render_tool_call(block: ToolCallContent) -> RenderableType:
    """Render a tool call with its status, locations and content items."""
    status = block.status.value
    header = Text()
    header.append("Tool: ", style="bold green")
    header.append(block.title or block.tool_call_id)
    header.append(f" [{status}]", style=_STATUS_STYLES.get(status, ""))
    if block.kind:
        header.append(f" ({block.kind})", style="dim")

    parts: list[RenderableType] = [header]
    for location in block.locations or ():
        suffix = f":{location.line}" if location.line is not None else ""
        parts.append(Text(f"  at {location.path}{suffix}", style="dim"))

    for item in block.content or ():
        if isinstance(item, ToolCallDiff):
            parts.append(Text(f"  diff {item.path}", style="magenta"))
        elif isinstance(item, ToolCallTerminal):
            parts.append(Text(f"  terminal {item.terminal_id}", style="dim"))
        elif isinstance(item, ToolCallOutput):
            text = item.content.get("text")
            if text is None:
                text = f"<{item.content.get('type', 'content')}>"
            parts.append(Text(_truncate(str(text))))

    if block.permission_request is not None:
        options = ", ".join(o.name for o in block.permission_request.options)
        parts.append(Text(f"  awaiting approval: {options}", style="bold yellow"))
    return Group(*parts)


def render_plan(block: PlanContent) -> RenderableType:
    table = Table(title="Plan", show_header=True, header_style="bold cyan")
    table.add_column("Entry")
    table.add_column("Priority")
    table.add_column("Status")
    for entry in block.entries:
        table.add_row(Text(entry.content), entry.priority, entry.status)
    return table


def render_block(block: ContentBlock) -> RenderableType:
    """Render one content block."""
    if isinstance(block, TextContent):
        return Text(block.text)
    if isinstance(block, AgentThoughtContent):
        return Text(f"Thinking: {block.text}", style="dim italic")
    if isinstance(block, TextWithContextContent):
        return Group(
            Text(f"@{block.auto_mention_context.note_name}", style="cyan"),
            Text(block.text),
        )
    if isinstance(block, ImageContent):
        return Text(f"[image {block.mime_type}, {len(block.data)} bytes]", style="dim")
    if isinstance(block, PlanContent):
        return render_plan(block)
    if isinstance(block, ToolCallContent):
        return render_tool_call(block)
    return Text(repr(block), style="dim")


def render_message(message: ChatMessage) -> Panel:
    """Render a message as a panel titled with its role and time."""
    is_user = message.role == Role.USER
    return Panel(
        Group(*(render_block(block) for block in message.content)),
        title=f"{message.role.value} {message.timestamp.strftime('%H:%M:%S')}",
        title_align="left",
        border_style="blue" if is_user else "magenta",
    )


def render_transcript(state: ChatState) -> list[RenderableType]:
    """Render a transcript snapshot, followed by its error if any."""
    renderables: list[RenderableType] = [render_message(m) for m in state.messages]
    if state.error_info is not None:
        error = Text()
        error.append(f"{state.error_info.title}: ", style="bold red")
        error.append(state.error_info.message)
        renderables.append(error)
    return renderables
