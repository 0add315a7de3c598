"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from devstack.output.console import create_console, get_output, style_for_runtime

if TYPE_CHECKING:
    from rich.console import Console

    from devstack.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    if result.op == "discover":
        kinds = [req["kind"] for req in result.data.get("infrastructure", [])]
        return "\n".join(kinds) if kinds else f"OK: {result.op}"

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="ds.ok")
    op = Text(f"  {result.op}", style="ds.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    k = Text(f"  {key}: ", style="ds.key")
    style = "ds.path" if key in ("entrypoint", "path") else ""
    console.print(Text.assemble(k, Text(str(value), style=style)))


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    # Container starts and health polls routinely take seconds.
    if duration > 10_000:
        style = "bold red"
    elif duration > 1000:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>10.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="ds.error")
    op = Text(f"  {result.op}", style="ds.op")
    console.print(label, op, Text(" — "), msg)

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Discovery ─────────────────────────────────────────────────────────


def _render_discover(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "entrypoint", d.get("entrypoint", ""))
    _field(console, "files", len(d.get("files", [])))
    _field(console, "duration", f"{d.get('duration_ms', 0.0):.1f}ms")

    primitives: list[dict[str, Any]] = d.get("primitives", [])
    if primitives:
        counts = Counter(p["name"] for p in primitives)
        summary = ", ".join(f"{name} x{n}" if n > 1 else name for name, n in counts.items())
        _field(console, "primitives", summary)

    requirements: list[dict[str, Any]] = d.get("infrastructure", [])
    console.print()
    if not requirements:
        console.print("  No infrastructure required")
    else:
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        table.add_column("Service", style="ds.kind", no_wrap=True)
        table.add_column("Requested by")
        table.add_column("Reason", style="dim")
        for req in requirements:
            table.add_row(
                str(req["kind"]),
                ", ".join(req.get("requested_by", [])),
                "; ".join(req.get("reasons", [])),
            )
        console.print(table)

    if verbose:
        console.print()
        for p in primitives:
            console.print(f"  [ds.path]{p['file']}:{p['line']}[/ds.path]  {p['name']}")
        _render_meta(console, result)


# ── Provisioning ──────────────────────────────────────────────────────


def _render_provision(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    services: list[dict[str, Any]] = d.get("services", [])

    if not d.get("required") and not services:
        console.print("  No infrastructure required")
    else:
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        table.add_column("Service", style="ds.kind", no_wrap=True)
        table.add_column("Runtime")
        table.add_column("Host")
        table.add_column("Port", justify="right")
        table.add_column("URL", style="ds.url")
        for svc in services:
            runtime = svc.get("runtime")
            table.add_row(
                str(svc["kind"]),
                Text(runtime or "external", style=style_for_runtime(runtime)),
                str(svc.get("host", "")),
                str(svc.get("port", "")),
                str(svc.get("url", "")),
            )
        console.print(table)

    if verbose:
        _render_meta(console, result)


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


_OP_RENDERERS: dict[str, Any] = {
    "discover": _render_discover,
    "provision": _render_provision,
}
