"""Rich/JSON output for ServiceResult.

The CLI renders a ServiceResult for humans (status line, captured errors,
chain statistics, telemetry tree) or machines (``--json``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.tree import Tree

from bbservices.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from bbservices.result import ServiceResult


def format_result(
    result: ServiceResult,
    *,
    json_output: bool = False,
    no_color: bool = False,
) -> str:
    """Format a ServiceResult for display.

    Args:
        result: The service result to format.
        json_output: If True, return JSON; otherwise return human-readable text.
        no_color: Disable ANSI escape codes in human output.
    """
    if json_output:
        return result.model_dump_json(indent=2)

    console = create_console(no_color=no_color)
    _status_line(console, result)
    for error in result.errors:
        console.print(f"  [bbs.error]{escape(error.type)}[/]: {escape(error.message)}")
    meta = result.meta or {}
    if "chain" in meta:
        _render_chain(console, meta["chain"])
    if "telemetry" in meta:
        console.print(_telemetry_tree(meta["telemetry"]))
    return get_output(console).rstrip("\n")


def _status_line(console: Console, result: ServiceResult) -> None:
    if result.ok:
        console.print(f"[bbs.ok]OK[/]: [bbs.op]{escape(result.op)}[/]")
    elif not result.ran:
        console.print(f"[bbs.warning]NOT RUN[/]: [bbs.op]{escape(result.op)}[/]")
    else:
        console.print(f"[bbs.error]FAILED[/]: [bbs.op]{escape(result.op)}[/]")


def _render_chain(console: Console, chain: dict[str, Any]) -> None:
    console.print(f"  [bbs.key]steps:[/] {chain['steps']}")
    console.print(f"  [bbs.key]skipped:[/] {chain['skipped']}")
    console.print(f"  [bbs.key]services:[/] {' -> '.join(chain['services'])}")


def _telemetry_tree(span: dict[str, Any], tree: Tree | None = None) -> Tree:
    label = f"{escape(span['name'])} [bbs.key]{span['duration_ms']}ms[/]"
    node = Tree(label) if tree is None else tree.add(label)
    for child in span.get("children", []):
        _telemetry_tree(child, node)
    return node
