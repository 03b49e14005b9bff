from __future__ import annotations

from typing import Iterable, Mapping

from ..analysis.diagnostics import Diagnostic
from ..analysis.pipeline import AnalysisResult


def _line_and_column(source: str, offset: int) -> tuple[int, int] | None:
    if not 0 <= offset <= len(source):
        return None
    line_start = source.rfind("\n", 0, offset) + 1
    return source.count("\n", 0, offset) + 1, offset - line_start + 1


def format_names(names: Iterable[str]) -> str:
    ordered = sorted(names)
    return "{ " + ", ".join(ordered) + " }" if ordered else "{ }"


def _format_sets(sets: Mapping[int, set[str]]) -> list[str]:
    return [f"{label}: {format_names(names)}" for label, names in sorted(sets.items()) if names]


def _format_table(rows: list[tuple[str, str, str]]) -> list[str]:
    widths = [max(len(row[col]) for row in rows) for col in range(3)]
    lines = []
    for idx, row in enumerate(rows):
        lines.append(" | ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip())
        if idx == 0:
            lines.append("-+-".join("-" * width for width in widths))
    return lines


def format_diagnostic(diagnostic: Diagnostic, source: str | None = None) -> str:
    location = f"char offset {diagnostic.offset}"
    if source is not None:
        mapped = _line_and_column(source, diagnostic.offset)
        if mapped:
            location += f" (line {mapped[0]}, column {mapped[1]})"
    return f"{diagnostic.kind.value}: {diagnostic.detail} at {location}"


def render_text_report(result: AnalysisResult, source: str | None = None) -> str:
    """Readable report: gen/kill sets, flows, live variables and findings."""
    lines: list[str] = ["Gen sets:"]
    lines.extend(_format_sets(result.gen))
    lines.append("")
    lines.append("Kill sets:")
    lines.extend(_format_sets(result.kill))
    lines.append("")
    lines.append("Flows:")
    lines.append(" ".join(f"({source_label}, {target})" for source_label, target in result.flows))
    lines.append("")
    lines.append("Live variables:")
    rows = [("label", "LVentry", "LVexit")]
    for label in sorted(result.lv_entry):
        rows.append(
            (
                str(label),
                format_names(result.lv_entry[label]),
                format_names(result.lv_exit.get(label, set())),
            )
        )
    lines.extend(_format_table(rows))
    lines.append("")
    lines.append("Diagnostics:")
    if result.diagnostics:
        lines.extend(format_diagnostic(item, source) for item in result.diagnostics)
    else:
        lines.append("none")
    return "\n".join(lines) + "\n"
