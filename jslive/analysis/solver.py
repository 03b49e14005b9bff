from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Hashable, Iterable

logger = logging.getLogger(__name__)

DEFAULT_MAX_PASSES = 10_000


class SolverDivergedError(RuntimeError):
    """The pass cap was hit; cannot happen for a monotone system over a finite lattice."""


@dataclass
class DataFlowResult:
    """Per-node dataflow facts at entry (`in_sets`) and exit (`out_sets`)."""

    in_sets: dict[Hashable, set[str]]
    out_sets: dict[Hashable, set[str]]
    passes: int = 0


TransferFn = Callable[[Hashable, set[str]], set[str]]


def solve_chaotic(
    nodes: Iterable[Hashable],
    successors: Callable[[Hashable], Iterable[Hashable]],
    transfer: TransferFn,
    max_passes: int = DEFAULT_MAX_PASSES,
) -> DataFlowResult:
    """Backward chaotic iteration: re-evaluate every node until a full pass changes nothing.

    A node's exit is the union of its successors' entries and its entry is
    `transfer(node, exit)`. Facts start empty and are compared as sets.
    """
    order = list(dict.fromkeys(nodes))
    in_sets: dict[Hashable, set[str]] = {node: set() for node in order}
    out_sets: dict[Hashable, set[str]] = {node: set() for node in order}
    following = {node: list(successors(node)) for node in order}

    passes = 0
    changed = True
    while changed:
        if passes >= max_passes:
            raise SolverDivergedError(f"no fixed point after {passes} passes")
        passes += 1
        changed = False
        for node in order:
            new_out: set[str] = set()
            for successor in following[node]:
                new_out |= in_sets.get(successor, set())
            new_in = transfer(node, new_out)
            if new_out != out_sets[node]:
                out_sets[node] = new_out
                changed = True
            if new_in != in_sets[node]:
                in_sets[node] = new_in
                changed = True

    logger.debug("fixed point reached after %d passes over %d nodes", passes, len(order))
    return DataFlowResult(in_sets=in_sets, out_sets=out_sets, passes=passes)
