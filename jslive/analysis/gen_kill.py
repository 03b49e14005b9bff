from __future__ import annotations

import logging
from typing import Iterable

from ..intermediate_representation.ast import (
    AssignmentExpression,
    Block,
    CallExpression,
    Declarator,
    ExpressionStatement,
    Identifier,
    IfStatement,
    Node,
    ThrowStatement,
    UpdateExpression,
    VariableDeclaration,
    WhileStatement,
    iter_expressions,
    iter_statements,
    referenced_names,
)

logger = logging.getLogger(__name__)

DEFAULT_OBSERVERS = ("console.log",)

GenKill = tuple[dict[int, set[str]], dict[int, set[str]]]


def collect_gen_kill(
    program: Block,
    observers: Iterable[str] = DEFAULT_OBSERVERS,
) -> GenKill:
    """Compute the variables read (gen) and written (kill) at each label.

    Assignments, updates and calls are recorded at their own offset and
    `if`/`while` tests at the test's offset. Only bare identifier arguments
    of the observer calls (`console.log` by default) count as reads.
    """
    observers = frozenset(observers)
    gen: dict[int, set[str]] = {}
    kill: dict[int, set[str]] = {}

    def entry(label: int) -> tuple[set[str], set[str]]:
        return gen.setdefault(label, set()), kill.setdefault(label, set())

    def visit_expression(expression: Node | None) -> None:
        for node in iter_expressions(expression):
            if isinstance(node, AssignmentExpression):
                gens, kills = entry(node.offset)
                gens.update(referenced_names(node.value))
                if isinstance(node.target, Identifier):
                    kills.add(node.target.name)
                    if node.operator != "=":
                        gens.add(node.target.name)
                else:
                    gens.update(referenced_names(node.target))
            elif isinstance(node, UpdateExpression):
                gens, kills = entry(node.offset)
                if isinstance(node.target, Identifier):
                    kills.add(node.target.name)
                    gens.add(node.target.name)
            elif isinstance(node, CallExpression):
                gens, _ = entry(node.offset)
                if node.callee_name() in observers:
                    gens.update(
                        argument.name
                        for argument in node.arguments
                        if isinstance(argument, Identifier)
                    )

    def visit_test(test: Node) -> None:
        gens, _ = entry(test.offset)
        gens.update(referenced_names(test))
        visit_expression(test)

    for statement in iter_statements(program):
        if isinstance(statement, ExpressionStatement):
            visit_expression(statement.expression)
        elif isinstance(statement, VariableDeclaration):
            for declarator in statement.declarations:
                if isinstance(declarator, Declarator):
                    visit_expression(declarator.init)
        elif isinstance(statement, ThrowStatement):
            visit_expression(statement.argument)
        elif isinstance(statement, (IfStatement, WhileStatement)):
            visit_test(statement.test)

    logger.debug("collected gen/kill entries for %d labels", len(gen))
    return gen, kill
