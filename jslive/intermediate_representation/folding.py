from __future__ import annotations

import logging
from dataclasses import replace

from ..analysis.diagnostics import Diagnostic, dead_branch
from .ast import Block, IfStatement, Literal

logger = logging.getLogger(__name__)


def fold_if(statement: IfStatement) -> tuple[IfStatement, list[Diagnostic]]:
    """Keep only the branch a constant test can select.

    Returns a folded copy, or `statement` itself when the test is not a
    constant or the statement was folded already. Nested statements are
    left alone; the CFG builder folds them when it reaches them, so code
    it never reaches is never reported.
    """
    truth = statement.test.truth if isinstance(statement.test, Literal) else None
    if statement.folded or truth is None:
        return statement, []

    if truth:
        live, dead, description = statement.consequent, statement.alternate, "if alternate"
    else:
        live, dead, description = statement.alternate, statement.consequent, "if consequent"

    diagnostics: list[Diagnostic] = []
    if dead is not None and len(dead) > 0:
        logger.debug("dropping %s at %d", description, dead.offset)
        diagnostics.append(dead_branch(description, dead.offset))
    if live is None:
        live = Block(offset=statement.consequent.offset)
    return replace(statement, consequent=live, alternate=None, folded=True), diagnostics
