"""Interactive upgrade command for upkeep.

Offers, for every dependency declared by the project's workspaces, the
choice between keeping the current range, moving to the newest range
compatible with it, or jumping to the ``latest`` dist-tag. The chosen
ranges are written back into every manifest that declares the same
descriptor.

The command glues together:

1. **ExclusionSpecParser / ExclusionMatcher**: configured and ``--exclude``
   rules
2. **Project**: workspace discovery and manifest persistence
3. **RegistryOracle / SuggestionResolver**: per-candidate options
4. **SuggestionScheduler**: progressive loading into a live table; the
   selection prompts start once the visible rows are in, while the rest
   keeps loading
5. **apply_selections**: folding choices back into the manifests

Typical usage::

    $ upkeep upgrade-interactive
    $ upkeep upgrade-interactive @acme/web @acme/api
    $ upkeep upgrade-interactive --exclude "react,@types/*" --backup
"""

from __future__ import annotations

import os
import sys
import shutil
import asyncio
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

import click
from rich.markup import escape
from rich.table import Table

from upkeep.exceptions import UpkeepError, WorkspaceRequiredError
from upkeep.context import pass_context, UpkeepContext
from upkeep.models import DependencyCandidate, ExclusionRule, SuggestionSet
from upkeep.constants import (
    LOADING_PLACEHOLDER,
    REGISTRY_MAX_RETRIES,
    VIEWPORT_CHROME_LINES,
)
from upkeep.core import (
    ExclusionMatcher,
    ExclusionSpecParser,
    Project,
    RegistryOracle,
    SuggestionResolver,
    SuggestionScheduler,
    apply_selections,
    collect_candidates,
    resolve_required_workspaces,
)
from upkeep.utils import (
    HTTPClient,
    build_table,
    colorize_update_type,
    get_logger,
    get_raw_console,
    get_update_type,
    live_display,
    print_error,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.upgrade")

Selections = Dict[str, Optional[str]]

T = TypeVar("T")

BOARD_HEADERS = ["Package", "Current", "Range", "Latest"]


@click.command("upgrade-interactive")
@click.argument("workspaces", nargs=-1)
@click.option(
    "--exclude",
    "-e",
    default=None,
    metavar="SPEC",
    help=(
        "Comma-separated dependencies to leave out, as "
        "[<location>#]<pattern>[@<version>]."
    ),
)
@click.option(
    "--backup",
    is_flag=True,
    help="Create backup files before updating manifests.",
)
@pass_context
def upgrade_interactive(
    ctx: UpkeepContext,
    workspaces: Tuple[str, ...],
    exclude: Optional[str],
    backup: bool,
) -> None:
    """Interactively upgrade dependencies across workspaces.

    WORKSPACES restricts the candidates to the named workspaces; by default
    every workspace of the project is scanned.

    \b
    Exits:
        0 when upgrades were written or there was nothing to upgrade,
        1 on errors or when the selection was cancelled,
        2 when not attached to an interactive terminal.
    """
    if not _is_interactive():
        raise click.UsageError(
            "The upgrade-interactive command requires an interactive terminal (TTY)"
        )

    try:
        rules = ExclusionSpecParser().parse_many([*ctx.config.exclude, exclude])
        exit_code = asyncio.run(_upgrade_async(ctx, list(workspaces), rules, backup))
        sys.exit(exit_code)

    except UpkeepError as e:
        print_error(f"{e}")
        sys.exit(1)


def _is_interactive() -> bool:
    try:
        return sys.stdin.isatty() and sys.stdout.isatty()
    except (AttributeError, ValueError):
        return False


def viewport_size() -> int:
    """Number of package rows that fit on screen below the prompt chrome."""
    rows = shutil.get_terminal_size().lines
    return max(1, rows - VIEWPORT_CHROME_LINES)


# ---------------------------------------------------------------------------
# Async orchestration
# ---------------------------------------------------------------------------


async def _upgrade_async(
    ctx: UpkeepContext,
    workspace_names: List[str],
    rules: Sequence[ExclusionRule],
    backup: bool,
) -> int:
    """Run one interactive session and return the exit code.

    Raises:
        UpkeepError: The project, a workspace or a manifest is invalid.
    """
    cwd = Path.cwd()
    project = Project.find(cwd)
    if project.workspace_for(cwd) is None:
        raise WorkspaceRequiredError(str(project.cwd), str(cwd))

    required = resolve_required_workspaces(project, workspace_names)
    matcher = ExclusionMatcher(rules)
    candidates = collect_candidates(project, matcher, os.getcwd(), required)

    if not candidates:
        print_success("No upgrades found")
        return 0

    config = ctx.config
    async with HTTPClient(
        max_retries=REGISTRY_MAX_RETRIES,
        max_rate_limit_retries=REGISTRY_MAX_RETRIES,
        max_concurrency=config.concurrent_limit,
    ) as http:
        oracle = RegistryOracle(
            http,
            registry=config.registry,
            default_range_prefix=config.default_range_prefix,
            concurrent_limit=config.concurrent_limit,
        )
        scheduler = SuggestionScheduler(SuggestionResolver(oracle), viewport_size())
        loading = await load_suggestions(scheduler, candidates)

        try:
            selections = await prompt_selections(scheduler)
        finally:
            # Stop loading when selection ended early
            if not scheduler.finished:
                scheduler.cancel()
        rows = await loading

    if selections is None or rows is None:
        print_warning("Cancelled, no manifest was changed")
        return 1
    if not rows:
        print_success("No upgrades found")
        return 0

    chosen = {key: value for key, value in selections.items() if value is not None}
    if not chosen:
        print_success("Nothing selected, manifests left unchanged")
        return 0

    _display_update_plan(rows, chosen)

    apply_selections(project.workspaces, chosen)
    written = project.persist(backup=backup)

    print_success(f"Updated {len(written)} manifest(s)")
    for path in written:
        logger.debug("  %s", path)
    print_warning("Run your package manager's install command to refresh the lockfile")
    return 0


async def load_suggestions(
    scheduler: SuggestionScheduler,
    candidates: Sequence[DependencyCandidate],
) -> "asyncio.Task[Optional[List[SuggestionSet]]]":
    """Start resolving and draw a live table until the first rows are usable.

    The live table is shown until the foreground rows are committed and the
    first row is available, or loading ends. Background groups keep loading
    in the returned task.

    Returns:
        The task running :meth:`SuggestionScheduler.run`.
    """
    viewport = scheduler.viewport_size
    initial = render_board([None] * len(candidates), viewport)

    with live_display(initial) as live:

        def redraw(rows: Sequence[Optional[SuggestionSet]]) -> None:
            live.update(render_board(rows, viewport), refresh=True)

        scheduler.on_update = redraw
        loading = asyncio.create_task(scheduler.run(candidates))
        try:
            await scheduler.wait_foreground()
            await scheduler.wait_for_row(0)
        except asyncio.CancelledError:
            scheduler.cancel()
            raise
        finally:
            scheduler.on_update = None

    return loading


def render_board(rows: Sequence[Optional[SuggestionSet]], viewport: int) -> Table:
    """Render the first *viewport* display slots as a table."""
    data = []
    for row in rows[:viewport]:
        if row is None:
            data.append(
                {header: f"[dim]{LOADING_PLACEHOLDER}[/dim]" for header in BOARD_HEADERS}
            )
            continue
        data.append(
            {
                "Package": escape(row.candidate.name),
                "Current": row.current.label,
                "Range": row.compatible.label,
                "Latest": row.latest.label,
            }
        )

    hidden = len(rows) - viewport
    caption = f"… {hidden} more" if hidden > 0 else None

    return build_table(
        data,
        headers=BOARD_HEADERS,
        caption=caption,
        column_styles={"Package": {"style": "bold cyan", "no_wrap": True}},
    )


async def prompt_selections(scheduler: SuggestionScheduler) -> Optional[Selections]:
    """Ask for one choice per row, from the top, while rows keep loading.

    Each committed row is offered as soon as it is available; the loop ends
    once loading has finished and every row has been answered.

    Returns:
        Candidate identity → chosen range (``None`` keeps the current one),
        or ``None`` when the user aborted with Ctrl+C or end of input.
    """
    selections: Selections = {}
    index = 0

    try:
        while True:
            row = await scheduler.wait_for_row(index)
            if row is None:
                break
            selections[row.candidate.identity_hash] = await _in_thread(prompt_row, row)
            index += 1
    except click.Abort:
        logger.debug("Selection aborted after %d row(s)", len(selections))
        return None

    return selections


def prompt_row(row: SuggestionSet) -> Optional[str]:
    """Print the options of *row* and ask which one to take.

    Raises:
        click.Abort: The user pressed Ctrl+C or input ended.
    """
    choices = row.choices()
    summary = "  ".join(
        f"[dim]{key}:[/dim] {option.label}" for key, option in choices.items()
    )
    get_raw_console().print(f"[bold cyan]{escape(row.candidate.name)}[/bold cyan]  {summary}")

    key = click.prompt(
        "  Upgrade to",
        type=click.Choice(list(choices)),
        default="current",
        show_choices=True,
    )
    return choices[key].value


async def _in_thread(func: Callable[..., T], *args: Any) -> T:
    """Run a blocking call on a daemon thread and await its result.

    A daemon thread never keeps the process alive, so an interrupt does not
    wait for a prompt that is still reading input.
    """
    loop = asyncio.get_running_loop()
    future: "asyncio.Future[T]" = loop.create_future()

    def deliver(outcome: Callable[[Any], None], value: Any) -> None:
        if not future.done():
            outcome(value)

    def target() -> None:
        try:
            result = func(*args)
        except BaseException as exc:  # noqa: BLE001
            loop.call_soon_threadsafe(deliver, future.set_exception, exc)
        else:
            loop.call_soon_threadsafe(deliver, future.set_result, result)

    threading.Thread(target=target, daemon=True).start()
    return await future


def _display_update_plan(rows: Sequence[SuggestionSet], chosen: Selections) -> None:
    """Print the ranges that are about to be written."""
    data = []
    for row in rows:
        new_range = chosen.get(row.candidate.identity_hash)
        if new_range is None:
            continue

        current = row.candidate.current_range
        update_type = get_update_type(current, new_range)
        data.append(
            {
                "Package": escape(row.candidate.name),
                "Workspace": escape(str(row.candidate.owning_workspace)),
                "Current": escape(current),
                "New Range": f"[bold green]{escape(new_range)}[/bold green]",
                "Change": colorize_update_type(update_type),
            }
        )

    column_styles = {
        "Package": {"style": "bold cyan", "no_wrap": True},
        "Workspace": {"style": "dim"},
        "Current": {"justify": "center", "style": "dim"},
        "New Range": {"justify": "center"},
        "Change": {"justify": "center"},
    }

    print_table(data, title="Update Plan", column_styles=column_styles)
