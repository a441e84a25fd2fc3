"""Per-session tool state: the active tool selector plus one state object per tool.

Each user action runs as one operation on one tool. While it runs the tool
is busy and further actions on it are refused. When it settles, the result
is applied only if nothing superseded it in the meantime: the user did not
switch views and the tool was not cleared. Otherwise the result is
discarded as stale.
"""
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from loguru import logger

from toolverse.audio import stop_clip
from toolverse.config import settings
from toolverse.errors import OperationInProgress, StaleResult
from toolverse.models import ToolId


T = TypeVar("T")

DEFAULT_SESSION = "default"


@dataclass
class ToolState:
    """State owned by one tool's view.

    Attributes:
        busy: An operation is running; the triggering control is disabled
        generation: Bumped by every new operation and by clear()
        result: Last applied result
        error: Last error message shown next to the control
        fields: Tool-specific values kept between actions (e.g. current story)
    """
    tool: ToolId
    busy: bool = False
    generation: int = 0
    result: Any = None
    error: Optional[str] = None
    fields: Dict[str, Any] = field(default_factory=dict)

    def summary(self) -> Dict[str, Any]:
        return {
            "tool": self.tool.value,
            "busy": self.busy,
            "has_result": self.result is not None,
            "error": self.error,
        }


@dataclass(frozen=True)
class Ticket:
    """Identifies one started operation."""
    tool: ToolId
    generation: int
    view_epoch: int


class Workspace:
    """Active tool selector and per-tool states for one client session."""

    def __init__(self, active_tool: ToolId = ToolId.PDF_SUMMARIZER) -> None:
        self.active_tool = active_tool
        self.view_epoch = 0
        self.states: Dict[ToolId, ToolState] = {tool: ToolState(tool=tool) for tool in ToolId}

    def state(self, tool: ToolId) -> ToolState:
        return self.states[tool]

    def select(self, tool: ToolId) -> None:
        """Switch views. In-flight operations keep running but their results go stale."""
        if tool != self.active_tool:
            logger.debug(f"Active tool {self.active_tool.value} -> {tool.value}")
            self.active_tool = tool
            self.view_epoch += 1

    def clear(self, tool: ToolId) -> None:
        """Reset a tool's fields and result; an in-flight result becomes stale."""
        state = self.states[tool]
        state.generation += 1
        state.busy = False
        state.result = None
        state.error = None
        state.fields.clear()

    def begin(self, tool: ToolId) -> Ticket:
        """
        Start an operation on ``tool`` and make it the active view.

        Raises:
            OperationInProgress: the tool already has one running
        """
        self.select(tool)
        state = self.states[tool]
        if state.busy:
            raise OperationInProgress(f"{tool.value} is still working on the previous request.")
        state.generation += 1
        state.busy = True
        state.error = None
        return Ticket(tool=tool, generation=state.generation, view_epoch=self.view_epoch)

    def is_current(self, ticket: Ticket) -> bool:
        state = self.states[ticket.tool]
        return (
            state.generation == ticket.generation
            and self.view_epoch == ticket.view_epoch
            and self.active_tool == ticket.tool
        )

    def settle(self, ticket: Ticket, result: Any = None, error: Optional[str] = None) -> bool:
        """
        Finish an operation. Returns False when its outcome was discarded.

        A cleared tool is not touched at all, since a newer operation may
        already own its busy flag.
        """
        state = self.states[ticket.tool]
        if state.generation != ticket.generation:
            logger.info(f"Discarding result for cleared {ticket.tool.value}")
            return False
        state.busy = False
        if not self.is_current(ticket):
            logger.info(f"Discarding stale result for {ticket.tool.value}: view changed")
            return False
        state.result = result
        state.error = error
        return True

    async def run(self, tool: ToolId, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run one operation under the busy/stale discipline.

        Raises:
            OperationInProgress: tool busy
            StaleResult: finished after the view changed or the tool was cleared
            Exception: whatever the operation raised, after recording it
        """
        ticket = self.begin(tool)
        try:
            result = await operation()
        except BaseException as e:
            # Cancellation included, or the tool would stay busy for good
            self.settle(ticket, error=str(e) or type(e).__name__)
            raise
        if not self.settle(ticket, result=result):
            raise StaleResult(
                f"The {tool.value} result arrived after you left the tool and was discarded."
            )
        return result

    def release(self) -> None:
        """Drop every tool's state, stopping any narration still marked as playing."""
        for tool, state in self.states.items():
            stop_clip(state.fields.get("clip"))
            self.clear(tool)

    def summary(self) -> Dict[str, Any]:
        return {
            "active_tool": self.active_tool.value,
            "tools": [state.summary() for state in self.states.values()],
        }


class WorkspaceRegistry:
    """
    Workspaces keyed by client session id, least recently used first.

    At most ``max_sessions`` workspaces are kept; the oldest is released when
    a new session would exceed the bound.
    """

    def __init__(self, max_sessions: Optional[int] = None) -> None:
        self.max_sessions = max_sessions or settings.max_sessions
        self._workspaces: "OrderedDict[str, Workspace]" = OrderedDict()

    def get(self, session_id: Optional[str]) -> Workspace:
        key = session_id or DEFAULT_SESSION
        if key in self._workspaces:
            self._workspaces.move_to_end(key)
            return self._workspaces[key]

        while len(self._workspaces) >= self.max_sessions:
            evicted_key, evicted = self._workspaces.popitem(last=False)
            logger.info(f"Evicting idle workspace {evicted_key}")
            evicted.release()
        workspace = self._workspaces[key] = Workspace()
        return workspace

    def __len__(self) -> int:
        return len(self._workspaces)

    def reset(self) -> None:
        self._workspaces.clear()


# Global instance
workspaces = WorkspaceRegistry()
