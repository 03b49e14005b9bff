from __future__ import annotations

import json

from ..analysis.pipeline import AnalysisResult


def _sets(sets: dict[int, set[str]]) -> dict[str, list[str]]:
    return {str(label): sorted(names) for label, names in sorted(sets.items())}


def render_json_report(result: AnalysisResult) -> str:
    payload = {
        "flows": [list(flow) for flow in result.flows],
        "gen": _sets(result.gen),
        "kill": _sets(result.kill),
        "lv_entry": _sets(result.lv_entry),
        "lv_exit": _sets(result.lv_exit),
        "diagnostics": [
            {"kind": item.kind.value, "offset": item.offset, "detail": item.detail}
            for item in result.diagnostics
        ],
    }
    return json.dumps(payload, indent=2) + "\n"
