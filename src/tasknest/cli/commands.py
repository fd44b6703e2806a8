# src/tasknest/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import cast

from ..errors import TaskNestError, ValidationError
from ..tasks.task_models import Task, TaskDraft, TaskStatus
from ..utils.datetime_helper import parse_iso, utc_now
from .bootstrap import AppContext

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppContext, list[str]], str]
CommandHandler3 = Callable[[AppContext, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

SHORT_ID_LEN = 8


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /tasks, ...)."""

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

    def handle(
        self,
        ctx: AppContext,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Validation and auth errors become user-visible replies.
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

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(ctx, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(ctx, args)
        except TaskNestError as e:
            logger.debug("Command /%s rejected: %s", name, e)
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


def _short(task_id: str) -> str:
    return task_id[:SHORT_ID_LEN]


def _fmt_due(dt: datetime) -> str:
    return dt.astimezone().strftime("%Y-%m-%d %H:%M")


def format_task(task: Task) -> str:
    mark = {"todo": "[ ]", "in_progress": "[~]", "completed": "[x]"}[task.status.value]
    tags = f" #{' #'.join(task.tags)}" if task.tags else ""
    return f"{mark} {_short(task.id)} ({task.priority.value}) {task.title} - due {_fmt_due(task.due_date)}{tags}"


def _resolve_task_id(ctx: AppContext, raw: str) -> str:
    """Accept a full id or a unique prefix of an owned/shared task id."""
    state = ctx.controller.state
    known = {t.id for t in state.tasks} | {t.id for t in state.shared_tasks}
    if raw in known:
        return raw
    matches = [tid for tid in known if tid.startswith(raw)]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        raise ValidationError(f"ambiguous task id prefix: {raw}")
    # Unknown locally: treat as a full id (shared links reference foreign tasks).
    return raw


def _require_user(ctx: AppContext) -> None:
    if ctx.controller.state.user is None:
        raise ValidationError("no user is signed in. Use /login or /signup.")


def _parse_due(raw: str) -> datetime:
    """'2' -> in 2 days, '-1' -> yesterday, otherwise an ISO date/datetime."""
    try:
        days = float(raw)
    except ValueError:
        pass
    else:
        try:
            return utc_now() + timedelta(days=days)
        except (OverflowError, ValueError):
            raise ValidationError(f"due date out of range: {raw}", field="due_date") from None
    try:
        return parse_iso(raw)
    except ValueError:
        raise ValidationError(f"invalid due date: {raw}", field="due_date") from None


def _parse_kv_args(args: list[str]) -> dict[str, str]:
    out: dict[str, str] = {}
    for a in args:
        if "=" not in a:
            raise ValidationError(f"expected key=value, got: {a}")
        k, v = a.split("=", 1)
        out[k.strip().lower()] = v.strip()
    return out


def _split_tags(raw: str) -> list[str]:
    return [t for t in (p.strip() for p in raw.split(",")) if t]


# ---- commands ----


def cmd_help(ctx: AppContext, args: list[str]) -> str:
    return registry.build_help()


def cmd_tasks(ctx: AppContext, args: list[str]) -> str:
    """
    /tasks          -> owned tasks through the active search + filters
    /tasks all      -> owned tasks, unfiltered
    """
    _require_user(ctx)
    state = ctx.controller.state
    if args and args[0].lower() == "all":
        tasks = list(state.tasks)
    else:
        tasks = ctx.controller.get_filtered_tasks()

    if not tasks:
        return "No tasks."
    header = f"Tasks ({len(tasks)}/{len(state.tasks)}):"
    return "\n".join([header, *(format_task(t) for t in tasks)])


def cmd_add(ctx: AppContext, args: list[str]) -> str:
    """
    /add <title words> [--due DAYS|ISO] [--priority low|medium|high] [--tags a,b] [--desc text]
    """
    _require_user(ctx)
    title_parts: list[str] = []
    opts: dict[str, list[str]] = {}
    current: str | None = None
    for a in args:
        if a.startswith("--"):
            current = a[2:].lower()
            opts[current] = []
        elif current is None:
            title_parts.append(a)
        else:
            opts[current].append(a)

    due_raw = " ".join(opts.get("due", [])) or "1"
    draft = TaskDraft(
        title=" ".join(title_parts),
        description=" ".join(opts.get("desc", [])),
        due_date=_parse_due(due_raw),
        priority=" ".join(opts.get("priority", [])) or "medium",
        tags=_split_tags(" ".join(opts.get("tags", []))),
    )
    task = ctx.controller.create_task(draft)
    return f"Created: {format_task(task)}"


def cmd_edit(ctx: AppContext, args: list[str]) -> str:
    """/edit <id> title=.. description=.. priority=.. status=.. due=.. tags=a,b"""
    if len(args) < 2:
        return "Usage: /edit <id> key=value ..."
    task_id = _resolve_task_id(ctx, args[0])
    raw = _parse_kv_args(args[1:])

    changes: dict[str, object] = {}
    for key, value in raw.items():
        if key == "due":
            changes["due_date"] = _parse_due(value)
        elif key == "tags":
            changes["tags"] = _split_tags(value)
        elif key == "desc":
            changes["description"] = value
        else:
            changes[key] = value

    task = ctx.controller.update_task(task_id, changes)
    if task is None:
        return f"Task not found: {args[0]}"
    return f"Updated: {format_task(task)}"


def cmd_done(ctx: AppContext, args: list[str]) -> str:
    if not args:
        return "Usage: /done <id>"
    task = ctx.controller.update_task(
        _resolve_task_id(ctx, args[0]), {"status": TaskStatus.COMPLETED}
    )
    if task is None:
        return f"Task not found: {args[0]}"
    return f"Completed: {format_task(task)}"


def cmd_status(ctx: AppContext, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /status <id> todo|in_progress|completed"
    task = ctx.controller.update_task(_resolve_task_id(ctx, args[0]), {"status": args[1]})
    if task is None:
        return f"Task not found: {args[0]}"
    return f"Updated: {format_task(task)}"


def cmd_rm(ctx: AppContext, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <id>"
    if ctx.controller.delete_task(_resolve_task_id(ctx, args[0])):
        return "Deleted."
    return f"Task not found: {args[0]}"


def cmd_search(ctx: AppContext, args: list[str]) -> str:
    """/search <text> sets the search query; /search with no text clears it."""
    query = " ".join(args)
    ctx.controller.set_search_query(query)
    if not query:
        return "Search cleared."
    return cmd_tasks(ctx, [])


def cmd_filter(ctx: AppContext, args: list[str]) -> str:
    """
    /filter                          -> show active filters
    /filter status=todo priority=high tags=a,b
    /filter clear
    """
    controller = ctx.controller
    if args and args[0].lower() == "clear":
        controller.set_filters(status="all", priority="all", tags=[])
        return "Filters cleared."

    if args:
        raw = _parse_kv_args(args)
        unknown = sorted(set(raw) - {"status", "priority", "tags"})
        if unknown:
            return f"Unknown filter: {', '.join(unknown)}"
        controller.set_filters(
            status=raw.get("status"),
            priority=raw.get("priority"),
            tags=_split_tags(raw["tags"]) if "tags" in raw else None,
        )

    f = controller.state.filters
    tags = ",".join(f.tags) or "-"
    return f"Filters: status={f.status} priority={f.priority} tags={tags}"


def cmd_share(ctx: AppContext, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /share <id> <user_id>"
    task = ctx.controller.share_task(_resolve_task_id(ctx, args[0]), args[1])
    if task is None:
        return f"Task not found: {args[0]}"
    return f"Shared {_short(task.id)} with {args[1]}. Link: /shared {task.id}"


def cmd_unshare(ctx: AppContext, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /unshare <id> <user_id>"
    task = ctx.controller.unshare_task(_resolve_task_id(ctx, args[0]), args[1])
    if task is None:
        return f"Task not found: {args[0]}"
    return f"{args[1]} no longer has access to {_short(task.id)}."


def cmd_shared(ctx: AppContext, args: list[str]) -> str:
    """
    /shared       -> tasks other users shared with you
    /shared <id>  -> open a task by link id (read-only)
    """
    if args:
        task = ctx.controller.resolve_shared_link(args[0])
        if task is None:
            return "Task not found or no longer available."
        lines = [format_task(task)]
        if task.description:
            lines.append(f"  {task.description}")
        lines.append("  (read-only)")
        return "\n".join(lines)

    tasks = ctx.controller.state.shared_tasks
    if not tasks:
        return "Nothing shared with you."
    return "\n".join([f"Shared with you ({len(tasks)}):", *(format_task(t) for t in tasks)])


def cmd_notes(ctx: AppContext, args: list[str]) -> str:
    _require_user(ctx)
    items = ctx.controller.state.notifications
    if not items:
        return "No notifications."
    lines = [f"Notifications ({ctx.controller.state.unread_notifications} unread):"]
    for n in items:
        dot = "*" if not n.read else " "
        lines.append(f"{dot} {_short(n.id)} {n.title}: {n.message}")
    return "\n".join(lines)


def cmd_read(ctx: AppContext, args: list[str]) -> str:
    """/read all | /read <notification id prefix>"""
    _require_user(ctx)
    if not args or args[0].lower() == "all":
        ctx.controller.mark_all_notifications_read()
        return "All notifications marked as read."

    prefix = args[0]
    matches = [n.id for n in ctx.controller.state.notifications if n.id.startswith(prefix)]
    if len(matches) != 1:
        return f"Notification not found: {prefix}"
    ctx.controller.mark_notification_read(matches[0])
    return "Marked as read."


def cmd_stats(ctx: AppContext, args: list[str]) -> str:
    default_days = int(getattr(ctx.settings, "analytics_window_days", 30))
    try:
        days = int(args[0]) if args else default_days
    except ValueError:
        return "Usage: /stats [days]"
    snap = ctx.controller.get_analytics(days)
    bp = snap.by_priority
    active_days = [d for d in snap.tasks_by_day if d.created or d.completed]
    lines = [
        f"Last {snap.window_days} days:",
        f"  Total: {snap.total}  Completed: {snap.completed}  Pending: {snap.pending}  Overdue: {snap.overdue}",
        f"  Completion rate: {snap.completion_rate:.1f}%",
        f"  By priority: high={bp['high']} medium={bp['medium']} low={bp['low']}",
    ]
    for d in active_days:
        lines.append(f"  {d.date.isoformat()}: +{d.created} created, {d.completed} completed")
    return "\n".join(lines)


def cmd_export(ctx: AppContext, args: list[str]) -> str:
    target = args[0] if args else ctx.settings.export_dir
    path = ctx.controller.export_to_file(target)
    return f"Exported to {path}"


def cmd_signup(ctx: AppContext, args: list[str]) -> str:
    """/signup <email> <password> <full name...>"""
    if len(args) < 3:
        return "Usage: /signup <email> <password> <full name>"
    user = ctx.identity.sign_up(args[0], args[1], " ".join(args[2:]))
    ctx.controller.initialize()
    return f"Welcome, {user.full_name}!"


def cmd_login(ctx: AppContext, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /login <email> <password>"
    user = ctx.identity.sign_in(args[0], args[1])
    ctx.controller.initialize()
    return f"Signed in as {user.full_name} <{user.email}>."


def cmd_logout(ctx: AppContext, args: list[str]) -> str:
    ctx.identity.sign_out()
    ctx.controller.refresh_data()
    return "Signed out."


def cmd_whoami(ctx: AppContext, args: list[str]) -> str:
    user = ctx.controller.state.user
    if user is None:
        return "Not signed in."
    p = user.preferences
    return (
        f"{user.full_name} <{user.email}> id={user.id}\n"
        f"  Preferences: dark_mode={p.dark_mode} language={p.language.value} "
        f"notifications={p.notifications}"
    )


def cmd_prefs(ctx: AppContext, args: list[str]) -> str:
    """/prefs dark_mode=on language=en notifications=off"""
    _require_user(ctx)
    if not args:
        return cmd_whoami(ctx, [])
    raw = _parse_kv_args(args)
    prefs: dict[str, object] = {}
    for key, value in raw.items():
        if key in ("dark_mode", "notifications"):
            prefs[key] = value.lower() in ("1", "on", "true", "yes")
        elif key == "language":
            prefs[key] = value
        else:
            return f"Unknown preference: {key}"
    ctx.controller.update_user_profile(preferences=prefs)
    return cmd_whoami(ctx, [])


def cmd_refresh(ctx: AppContext, args: list[str]) -> str:
    ctx.controller.refresh_data()
    state = ctx.controller.state
    return f"Refreshed: {len(state.tasks)} tasks, {state.unread_notifications} unread notifications."


def cmd_reset(ctx: AppContext, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/reset yes -> wipe all local task data"""
    if not args or args[0].lower() != "yes":
        return "This deletes all local task data. Confirm with: /reset yes"
    if emit:
        emit("[RESET] Clearing local data...")
    ctx.controller.clear_all_data()
    return "All data cleared."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("tasks", cmd_tasks, help_text="List tasks (filtered): /tasks [all].", aliases=["ls"])
registry.register(
    "add",
    cmd_add,
    help_text="Create: /add <title> [--due DAYS|ISO] [--priority p] [--tags a,b] [--desc text].",
)
registry.register("edit", cmd_edit, help_text="Edit: /edit <id> key=value ...")
registry.register("done", cmd_done, help_text="Mark completed: /done <id>.")
registry.register("status", cmd_status, help_text="Set status: /status <id> todo|in_progress|completed.")
registry.register("rm", cmd_rm, help_text="Delete: /rm <id>.", aliases=["delete"])
registry.register("search", cmd_search, help_text="Search title/description/tags: /search <text>.")
registry.register("filter", cmd_filter, help_text="Filters: /filter status=.. priority=.. tags=a,b | clear.")
registry.register("share", cmd_share, help_text="Share read access: /share <id> <user_id>.")
registry.register("unshare", cmd_unshare, help_text="Revoke read access: /unshare <id> <user_id>.")
registry.register("shared", cmd_shared, help_text="Shared with you, or open a link: /shared [id].")
registry.register("notes", cmd_notes, help_text="Show notifications.", aliases=["notifications"])
registry.register("read", cmd_read, help_text="Mark read: /read all | /read <id>.")
registry.register("stats", cmd_stats, help_text="Analytics: /stats [days].")
registry.register("export", cmd_export, help_text="Export a JSON backup: /export [dir].")
registry.register("signup", cmd_signup, help_text="Create account: /signup <email> <password> <name>.")
registry.register("login", cmd_login, help_text="Sign in: /login <email> <password>.")
registry.register("logout", cmd_logout, help_text="Sign out.")
registry.register("whoami", cmd_whoami, help_text="Show current user.")
registry.register("prefs", cmd_prefs, help_text="Preferences: /prefs dark_mode=on language=en notifications=off.")
registry.register("refresh", cmd_refresh, help_text="Reload data and check due tasks.")
registry.register("reset", cmd_reset, help_text="Delete all local task data: /reset yes.")
