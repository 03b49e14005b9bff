from __future__ import annotations

from ..analysis.diagnostics import DiagnosticKind
from ..analysis.pipeline import AnalysisResult
from ..intermediate_representation.ast import assign_labels
from .text import format_names


def _quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def render_cfg_dot(result: AnalysisResult, name: str = "cfg") -> str:
    """Graphviz digraph of the CFG with LVentry/LVexit on every node.

    Labels holding a dead assignment are drawn in red.
    """
    nodes = assign_labels(result.program)
    dead = {
        item.offset
        for item in result.diagnostics
        if item.kind is DiagnosticKind.DEAD_ASSIGNMENT
    }
    lines = [f"digraph {_quote(name)} {{", '  node [shape=box, fontname="monospace"];']
    for label in result.cfg.labels():
        node = nodes.get(label)
        kind = node.kind if node is not None else "?"
        text = (
            f"{label}: {kind}\\n"
            f"in  {format_names(result.lv_entry.get(label, set()))}\\n"
            f"out {format_names(result.lv_exit.get(label, set()))}"
        )
        attrs = [f"label={_quote(text)}"]
        if label in dead:
            attrs.append("color=red")
        if label == result.cfg.initial:
            attrs.append("penwidth=2")
        lines.append(f"  n{label} [{', '.join(attrs)}];")
    for source, target in dict.fromkeys(result.flows):
        lines.append(f"  n{source} -> n{target};")
    lines.append("}")
    return "\n".join(lines) + "\n"


def render_dot_file(dot_source: str, path: str, fmt: str = "png") -> str:
    """Render DOT text to an image with the graphviz package (`viz` extra)."""
    try:
        from graphviz import Source
    except ImportError as exc:
        raise RuntimeError(
            "Rendering images needs the graphviz package: pip install 'jslive[viz]'."
        ) from exc
    return Source(dot_source).render(outfile=path, format=fmt, cleanup=True)
