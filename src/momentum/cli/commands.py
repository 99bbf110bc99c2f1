# src/momentum/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable

from ..core.coordinator import TaskCoordinator
from ..core.state import CommandResult
from ..tasks import task_tree
from ..tasks.task_models import Direction, Task

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[
    [TaskCoordinator, list[str], CommandEmitter | None], str | Awaitable[str]
]

SHORT_ID_LEN = 6

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        coordinator: TaskCoordinator,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        logger.debug("Command /%s args=%s", name, args)
        result = handler(coordinator, args, emit)
        if inspect.isawaitable(result):
            result = await result
        return result

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("  Any other text is sent to the LLM and replaces the task list.")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


def short_id(task_id: str) -> str:
    return task_id[:SHORT_ID_LEN]


def resolve_task_id(coordinator: TaskCoordinator, token: str) -> str | None:
    """Resolve a full id or a unique id prefix (an optional leading '@' is ignored)."""
    token = token.lstrip("@").strip()
    if not token:
        return None
    ids = task_tree.collect_ids(coordinator.tree)
    if token in ids:
        return token
    matches = [i for i in ids if i.startswith(token)]
    return matches[0] if len(matches) == 1 else None


def format_result(result: CommandResult) -> str:
    mark = "OK" if result.ok else "!!"
    return f"[{mark}] {result.title}: {result.message}" if result.message else f"[{mark}] {result.title}"


def render_tree(tree: tuple[Task, ...], focused_id: str | None = None) -> str:
    if not tree:
        return "No tasks yet. Describe your problem to get started."
    lines: list[str] = []
    for depth, task in task_tree.iter_tasks(tree):
        indent = "  " * depth
        box = "[x]" if task.is_completed else "[ ]"
        focus = " *" if task.id == focused_id else ""
        lines.append(f"{indent}{box} {task.title}  ({short_id(task.id)}){focus}")
        if task.first_step:
            step_box = "[x]" if task.is_first_step_completed else "[ ]"
            lines.append(f"{indent}    first step {step_box} {task.first_step}")
    return "\n".join(lines)


def _need_task(coordinator: TaskCoordinator, args: list[str], usage: str) -> tuple[str | None, str | None]:
    if not args:
        return None, usage
    task_id = resolve_task_id(coordinator, args[0])
    if task_id is None:
        return None, f"No task matches '{args[0]}'."
    return task_id, None


# ---- handlers ----


def cmd_help(coordinator: TaskCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


def cmd_list(coordinator: TaskCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    return render_tree(coordinator.tree, coordinator.state.focused_id)


def cmd_status(coordinator: TaskCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    st = coordinator.state
    focused = coordinator.focused_task
    storage = "OK" if coordinator.last_storage_error is None else f"FAILING ({coordinator.last_storage_error})"
    return (
        "Status:\n"
        f"  Tasks: {task_tree.count_tasks(st.tree)} ({len(st.tree)} roots)\n"
        f"  Focused: {focused.title if focused else '-'}\n"
        f"  Focus view: {'ON' if st.focus_active else 'OFF'}\n"
        f"  Storage: {storage}"
    )


def cmd_add(coordinator: TaskCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /add <title>             -> new root task
    /add @<parent> <title>   -> new subtask
    """
    parent_id: str | None = None
    if args and args[0].startswith("@"):
        parent_id = resolve_task_id(coordinator, args[0])
        if parent_id is None:
            return f"No task matches '{args[0]}'."
        args = args[1:]
    return format_result(coordinator.add_task(parent_id, " ".join(args)))


def _refuse_if_completed(coordinator: TaskCoordinator, task_id: str) -> str | None:
    task = coordinator.find(task_id)
    if task is not None and task.is_completed:
        return f"\"{task.title}\" is completed; reopen it with /done first."
    return None


def cmd_rename(coordinator: TaskCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    task_id, err = _need_task(coordinator, args, "Usage: /rename <id> <title>")
    if task_id is None:
        return err or ""
    refusal = _refuse_if_completed(coordinator, task_id)
    if refusal:
        return refusal
    return format_result(coordinator.rename_task(task_id, " ".join(args[1:])))


def cmd_done(coordinator: TaskCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    task_id, err = _need_task(coordinator, args, "Usage: /done <id>")
    if task_id is None:
        return err or ""
    coordinator.toggle_complete(task_id)
    task = coordinator.find(task_id)
    return f"{task.title}: {'completed' if task and task.is_completed else 'not completed'}"


def cmd_delete(coordinator: TaskCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    task_id, err = _need_task(coordinator, args, "Usage: /del <id>")
    if task_id is None:
        return err or ""
    return format_result(coordinator.delete_task(task_id))


def _cmd_move(direction: Direction) -> CommandHandler:
    def handler(coordinator: TaskCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
        task_id, err = _need_task(coordinator, args, f"Usage: /{direction.value} <id>")
        if task_id is None:
            return err or ""
        refusal = _refuse_if_completed(coordinator, task_id)
        if refusal:
            return refusal
        before = coordinator.tree
        after = coordinator.reorder_task(task_id, direction)
        if after is before:
            return f"Cannot move further {direction.value}."
        return render_tree(after, coordinator.state.focused_id)

    return handler


def cmd_step(coordinator: TaskCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /step <id> <text>  -> set the first step
    /step <id>         -> clear it
    """
    task_id, err = _need_task(coordinator, args, "Usage: /step <id> [text]")
    if task_id is None:
        return err or ""
    text = " ".join(args[1:])
    coordinator.set_first_step(task_id, text)
    return f"First step set: {text}" if text else "First step cleared."


def cmd_step_done(coordinator: TaskCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    task_id, err = _need_task(coordinator, args, "Usage: /stepdone <id>")
    if task_id is None:
        return err or ""
    coordinator.toggle_first_step_complete(task_id)
    task = coordinator.find(task_id)
    return f"First step {'done' if task and task.is_first_step_completed else 'not done'}."


async def cmd_suggest(coordinator: TaskCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    task_id, err = _need_task(coordinator, args, "Usage: /suggest <id>")
    if task_id is None:
        return err or ""
    task = coordinator.find(task_id)
    if task is None:
        return f"No task matches '{args[0]}'."
    if emit:
        emit(f"Asking for a first step for '{task.title}'...")
    return format_result(await coordinator.suggest_first_step(task_id, task.title))


def cmd_focus(coordinator: TaskCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /focus <id>  -> focus a task
    /focus       -> clear focus
    """
    if not args:
        coordinator.select_focus(None)
        return "Focus cleared."
    task_id = resolve_task_id(coordinator, args[0])
    if task_id is None:
        return f"No task matches '{args[0]}'."
    coordinator.select_focus(task_id)
    task = coordinator.focused_task
    return f"Focused: {task.title if task else task_id}"


def cmd_focus_view(coordinator: TaskCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    result = coordinator.toggle_focus_view()
    task = coordinator.focused_task
    if not result.ok or not coordinator.state.focus_active or task is None:
        return format_result(result)

    step = task.first_step or "Define your first step..."
    step_box = "[x]" if task.is_first_step_completed else "[ ]"
    return f"== FOCUS: {task.title} ==\nFirst step {step_box} {step}"


def cmd_clear(coordinator: TaskCoordinator, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args or args[0].lower() != "yes":
        return "This deletes every task. Confirm with: /clear yes"
    return format_result(coordinator.clear_all())


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("ls", cmd_list, help_text="Show the task tree.", aliases=["list"])
registry.register("status", cmd_status, help_text="Show counts, focus and storage state.")
registry.register("add", cmd_add, help_text="Add a task: /add <title> | /add @<parent> <title>.")
registry.register("rename", cmd_rename, help_text="Rename a task: /rename <id> <title>.")
registry.register("done", cmd_done, help_text="Toggle completion: /done <id>.")
registry.register("del", cmd_delete, help_text="Delete a task and its subtasks: /del <id>.", aliases=["rm"])
registry.register("up", _cmd_move(Direction.UP), help_text="Move a task up among its siblings: /up <id>.")
registry.register("down", _cmd_move(Direction.DOWN), help_text="Move a task down among its siblings: /down <id>.")
registry.register("step", cmd_step, help_text="Set or clear the first step: /step <id> [text].")
registry.register("stepdone", cmd_step_done, help_text="Toggle first step completion: /stepdone <id>.")
registry.register("suggest", cmd_suggest, help_text="Ask the LLM for a first step: /suggest <id>.")
registry.register("focus", cmd_focus, help_text="Focus a task: /focus <id> | /focus (clear).")
registry.register("focusview", cmd_focus_view, help_text="Toggle focus view for the focused task.", aliases=["fv"])
registry.register("clear", cmd_clear, help_text="Delete all tasks: /clear yes.")
