from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping

logger = logging.getLogger(__name__)


class DiagnosticKind(Enum):
    UNREACHABLE = "unreachable"
    DEAD_BRANCH = "dead-branch"
    DEAD_ASSIGNMENT = "dead-assignment"


@dataclass(frozen=True)
class Diagnostic:
    """A finding of the analysis; reported, never raised."""

    kind: DiagnosticKind
    offset: int
    detail: str

    def __str__(self) -> str:
        return f"{self.kind.value} at char offset {self.offset}: {self.detail}"


def unreachable_statement(kind: str, offset: int) -> Diagnostic:
    return Diagnostic(DiagnosticKind.UNREACHABLE, offset, f"unreachable {kind}")


def dead_branch(description: str, offset: int) -> Diagnostic:
    return Diagnostic(DiagnosticKind.DEAD_BRANCH, offset, f"unreachable {description}")


def report_dead_assignments(
    kill: Mapping[int, set[str]],
    out_sets: Mapping[int, set[str]],
) -> list[Diagnostic]:
    """Flag writes whose value is not live on exit from the writing label.

    Labels missing from `out_sets` are not part of the CFG (their code is
    unreachable and reported elsewhere) and are skipped.
    """
    findings: list[Diagnostic] = []
    for label, names in kill.items():
        if not names or label not in out_sets:
            continue
        # At most one target per label in the analysed subset.
        name = min(names)
        if name in out_sets[label]:
            continue
        logger.debug("dead assignment of %s at %d", name, label)
        findings.append(
            Diagnostic(DiagnosticKind.DEAD_ASSIGNMENT, label, f"dead assignment to {name}")
        )
    return findings
