from __future__ import annotations

import logging
from dataclasses import dataclass

from ..config import AnalysisConfig
from ..intermediate_representation.ast import Block, assign_labels
from ..intermediate_representation.cfg import CFG, build_cfg
from .diagnostics import Diagnostic, report_dead_assignments
from .gen_kill import collect_gen_kill
from .live_variables import compute_live_variables
from .solver import DataFlowResult

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    program: Block
    cfg: CFG
    gen: dict[int, set[str]]
    kill: dict[int, set[str]]
    live: DataFlowResult
    diagnostics: list[Diagnostic]

    @property
    def flows(self) -> list[tuple[int, int]]:
        return self.cfg.flows

    @property
    def lv_entry(self) -> dict[int, set[str]]:
        return self.live.in_sets

    @property
    def lv_exit(self) -> dict[int, set[str]]:
        return self.live.out_sets


def analyze(program: Block, config: AnalysisConfig | None = None) -> AnalysisResult:
    """Run the whole pipeline: CFG, gen/kill, live variables, diagnostics."""
    config = config or AnalysisConfig()
    # Fails early on a tree whose labels are not unique.
    assign_labels(program)

    cfg = build_cfg(program)
    gen, kill = collect_gen_kill(program, observers=config.observers)
    labels = cfg.labels()
    for label in labels:
        gen.setdefault(label, set())
        kill.setdefault(label, set())

    live = compute_live_variables(
        cfg.flows, kill, gen, labels=labels, max_passes=config.max_passes
    )
    dead = report_dead_assignments(kill, live.out_sets)
    diagnostics = sorted(cfg.diagnostics + dead, key=lambda item: item.offset)
    logger.info(
        "analysed %d labels, %d flows: %d diagnostics after %d passes",
        len(labels),
        len(cfg.flows),
        len(diagnostics),
        live.passes,
    )
    return AnalysisResult(
        program=program,
        cfg=cfg,
        gen=gen,
        kill=kill,
        live=live,
        diagnostics=diagnostics,
    )
