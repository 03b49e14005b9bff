from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from ..analysis.diagnostics import Diagnostic, dead_branch, unreachable_statement
from .ast import (
    Block,
    BreakStatement,
    ContinueStatement,
    ExpressionStatement,
    IfStatement,
    Literal,
    Node,
    ThrowStatement,
    TryStatement,
    UnsupportedStatement,
    VariableDeclaration,
    WhileStatement,
)
from .folding import fold_if

logger = logging.getLogger(__name__)

Flow = tuple[int, int]


@dataclass
class CFG:
    """Control-flow graph over program point labels."""

    flows: list[Flow]
    initial: int | None
    finals: list[int]
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def __iter__(self) -> Iterator[Flow]:
        return iter(self.flows)

    def labels(self) -> list[int]:
        """Every label of the graph, in order of first appearance.

        Includes the entry and exit labels even when no edge touches them,
        which happens for single-statement programs.
        """
        seen: list[int] = []
        if self.initial is not None:
            seen.append(self.initial)
        for source, target in self.flows:
            seen.extend((source, target))
        seen.extend(self.finals)
        return _unique(seen)

    def successors(self, label: int) -> list[int]:
        return _unique(target for source, target in self.flows if source == label)

    def predecessors(self, label: int) -> list[int]:
        return _unique(source for source, target in self.flows if target == label)


@dataclass
class BlockResult:
    """What one recursive builder call learns about a block or statement."""

    initial: int | None = None
    finals: list[int] = field(default_factory=list)
    flows: list[Flow] = field(default_factory=list)
    throw: int | None = None
    breaks: list[int] = field(default_factory=list)
    continues: list[int] = field(default_factory=list)
    # Every throw label that escapes, conditional or not.
    raises: list[int] = field(default_factory=list)
    reachable_exit: bool = True
    # (statement offset, entry label) of reachable top-level statements.
    entries: list[tuple[int, int]] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return self.initial is None


def _unique(labels: Iterable[int]) -> list[int]:
    return list(dict.fromkeys(labels))


def build_cfg(program: Block) -> CFG:
    """Build the flow graph of `program`, folding constant `if` tests on the way."""
    builder = _FlowBuilder()
    result = builder.build(program)
    cfg = CFG(
        flows=result.flows,
        initial=result.initial,
        finals=result.finals,
        diagnostics=builder.diagnostics,
    )
    logger.debug(
        "built CFG with %d flows and %d labels", len(cfg.flows), len(cfg.labels())
    )
    return cfg


def build_block(block: Node) -> tuple[BlockResult, list[Diagnostic]]:
    """Build one block; non-blocks give an empty result."""
    builder = _FlowBuilder()
    return builder.build(block), builder.diagnostics


class _FlowBuilder:
    def __init__(self) -> None:
        self.diagnostics: list[Diagnostic] = []

    def build(self, block: Node) -> BlockResult:
        result = BlockResult()
        if not isinstance(block, Block):
            return result

        pred: list[int] = []
        unreachable = False
        for statement in block.body:
            if unreachable:
                logger.debug("unreachable %s at %d", statement.kind, statement.offset)
                self.diagnostics.append(
                    unreachable_statement(statement.kind, statement.offset)
                )
                continue

            fragment = self._statement(statement)
            if fragment.empty:
                continue

            if result.initial is None:
                result.initial = fragment.initial
            result.entries.append((statement.offset, fragment.initial))
            result.flows.extend((label, fragment.initial) for label in pred)
            result.flows.extend(fragment.flows)
            result.breaks.extend(fragment.breaks)
            result.continues.extend(fragment.continues)
            result.raises.extend(fragment.raises)
            if fragment.throw is not None and result.throw is None:
                result.throw = fragment.throw

            if fragment.reachable_exit:
                pred = list(fragment.finals)
            else:
                pred = []
                unreachable = True

        result.finals = pred
        result.reachable_exit = not unreachable
        return result

    def _statement(self, statement: Node) -> BlockResult:
        if isinstance(statement, (ExpressionStatement, VariableDeclaration)):
            return BlockResult(initial=statement.offset, finals=[statement.offset])
        if isinstance(statement, ThrowStatement):
            return BlockResult(
                initial=statement.offset,
                throw=statement.offset,
                raises=[statement.offset],
                reachable_exit=False,
            )
        if isinstance(statement, BreakStatement):
            return BlockResult(
                initial=statement.offset, breaks=[statement.offset], reachable_exit=False
            )
        if isinstance(statement, ContinueStatement):
            return BlockResult(
                initial=statement.offset, continues=[statement.offset], reachable_exit=False
            )
        if isinstance(statement, IfStatement):
            return self._if(statement)
        if isinstance(statement, WhileStatement):
            return self._while(statement)
        if isinstance(statement, TryStatement):
            return self._try(statement)
        if isinstance(statement, Block):
            return self.build(statement)
        if isinstance(statement, UnsupportedStatement):
            logger.debug("skipping unsupported %s at %d", statement.kind, statement.offset)
        return BlockResult()

    def _if(self, statement: IfStatement) -> BlockResult:
        test = statement.test.offset
        # Without an else in the source the test falls through, folded or not.
        implicit_else = statement.alternate is None
        statement, found = fold_if(statement)
        self.diagnostics.extend(found)

        branches = [self.build(statement.consequent)]
        if statement.alternate is not None:
            branches.append(self.build(statement.alternate))

        result = BlockResult(initial=test)
        for branch in branches:
            if not branch.empty:
                result.flows.append((test, branch.initial))
        for branch in branches:
            result.flows.extend(branch.flows)
            result.breaks.extend(branch.breaks)
            result.continues.extend(branch.continues)
            result.raises.extend(branch.raises)

        finals: list[int] = []
        falls_through = implicit_else
        for branch in branches:
            if branch.empty:
                finals.append(test)
                falls_through = True
            elif branch.reachable_exit:
                finals.extend(branch.finals)
                falls_through = True
        if implicit_else:
            finals.append(test)

        result.finals = _unique(finals)
        result.reachable_exit = falls_through
        if not implicit_else and all(branch.throw is not None for branch in branches):
            result.throw = branches[0].throw
        return result

    def _while(self, statement: WhileStatement) -> BlockResult:
        test = statement.test.offset
        result = BlockResult(initial=test, finals=[test])

        if isinstance(statement.test, Literal) and statement.test.truth is False:
            if len(statement.body) > 0:
                logger.debug("loop body at %d never runs", statement.body.offset)
                self.diagnostics.append(dead_branch("while body", statement.body.offset))
            return result

        body = self.build(statement.body)
        if body.empty:
            result.flows.append((test, test))
            return result

        result.flows.append((test, body.initial))
        result.flows.extend(body.flows)
        back = list(body.finals) if body.reachable_exit else []
        back.extend(body.continues)
        result.flows.extend((label, test) for label in _unique(back))
        result.finals = _unique([test] + body.breaks)
        result.raises = list(body.raises)
        return result

    def _try(self, statement: TryStatement) -> BlockResult:
        block = self.build(statement.block)
        if block.empty and len(statement.handler) > 0:
            # Nothing can raise, so the handler is never entered or built.
            logger.debug("catch clause at %d never runs", statement.handler.offset)
            self.diagnostics.append(dead_branch("catch clause", statement.handler.offset))
        handler = BlockResult() if block.empty else self.build(statement.handler)
        finalizer = (
            self.build(statement.finalizer)
            if statement.finalizer is not None
            else BlockResult()
        )

        if block.empty:
            return finalizer

        result = BlockResult(initial=block.initial)
        result.flows.extend(block.flows)
        result.breaks.extend(block.breaks + handler.breaks + finalizer.breaks)
        result.continues.extend(block.continues + handler.continues + finalizer.continues)

        # Any statement up to the first unconditional throw may raise.
        sources: list[int] = []
        for offset, entry in block.entries:
            if block.throw is not None and offset > block.throw:
                break
            sources.append(entry)
        sources = _unique(sources + block.raises)

        if handler.empty:
            handler_exits = sources
        else:
            result.flows.extend((label, handler.initial) for label in sources)
            result.flows.extend(handler.flows)
            handler_exits = list(handler.finals) if handler.reachable_exit else []

        try_exits = list(block.finals) if block.reachable_exit else []
        exits = _unique(try_exits + handler_exits)

        if finalizer.empty:
            result.finals = exits
            result.reachable_exit = bool(exits)
            result.raises = list(handler.raises)
            if block.throw is not None:
                result.throw = handler.throw
            return result

        into_finalizer = _unique(exits + handler.raises)
        result.flows.extend((label, finalizer.initial) for label in into_finalizer)
        result.flows.extend(finalizer.flows)
        result.raises = _unique(handler.raises + finalizer.raises)
        if exits and finalizer.reachable_exit:
            result.finals = list(finalizer.finals)
        else:
            result.reachable_exit = False
            result.throw = finalizer.throw
            if result.throw is None and block.throw is not None:
                result.throw = handler.throw
        return result
