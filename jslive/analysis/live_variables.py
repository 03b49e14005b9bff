from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Mapping

from .solver import DEFAULT_MAX_PASSES, DataFlowResult, solve_chaotic


def compute_live_variables(
    flows: Iterable[tuple[int, int]],
    kill: Mapping[int, set[str]],
    gen: Mapping[int, set[str]],
    labels: Iterable[int] | None = None,
    max_passes: int = DEFAULT_MAX_PASSES,
) -> DataFlowResult:
    """Solve LVentry/LVexit over the flow graph (backward, may analysis).

    LVexit(l)  = union of LVentry(l') over every flow (l, l')
    LVentry(l) = (LVexit(l) - kill(l)) | gen(l)

    `in_sets` holds LVentry and `out_sets` LVexit. The nodes are every label
    on an edge plus any `labels` given; `labels` also fixes the order in
    which a pass visits them. Labels without gen/kill entries are treated as
    reading and writing nothing.
    """
    flows = list(flows)
    successors: dict[int, list[int]] = defaultdict(list)
    nodes: list[int] = list(labels or [])
    for source, target in flows:
        successors[source].append(target)
        nodes.extend((source, target))

    def transfer(label: int, live_out: set[str]) -> set[str]:
        return (live_out - kill.get(label, set())) | gen.get(label, set())

    return solve_chaotic(
        nodes,
        successors=lambda label: successors.get(label, []),
        transfer=transfer,
        max_passes=max_passes,
    )
