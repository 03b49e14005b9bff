from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from ..intermediate_representation.ast import (
    AssignmentExpression,
    Block,
    BreakStatement,
    CallExpression,
    ContinueStatement,
    Declarator,
    ExpressionStatement,
    Identifier,
    IfStatement,
    Literal,
    MalformedTreeError,
    MemberExpression,
    Node,
    Operation,
    Program,
    ThrowStatement,
    TryStatement,
    UnsupportedStatement,
    UpdateExpression,
    VariableDeclaration,
    WhileStatement,
)

logger = logging.getLogger(__name__)

# ESTree keys that never hold child expressions.
_NON_CHILD_KEYS = {"type", "start", "end", "loc", "range", "raw", "operator", "prefix", "sourceType"}


def _offset(node: dict) -> int:
    offset = node.get("start")
    if isinstance(offset, bool) or not isinstance(offset, int):
        raise MalformedTreeError(str(node.get("type", "node")), None, "missing integer 'start'")
    return offset


def _require(node: dict, key: str) -> dict:
    child = node.get(key)
    if not isinstance(child, dict):
        raise MalformedTreeError(str(node.get("type")), _offset(node), f"missing '{key}'")
    return child


def _expression(node: Any) -> Node | None:
    if node is None:
        return None
    if not isinstance(node, dict) or "type" not in node:
        raise MalformedTreeError("expression", None, f"expected a node, got {type(node).__name__}")
    kind = node["type"]
    offset = _offset(node)

    if kind == "Identifier":
        name = node.get("name")
        if not isinstance(name, str):
            raise MalformedTreeError(kind, offset, "missing 'name'")
        return Identifier(offset=offset, name=name)
    if kind == "Literal":
        value = node.get("value")
        if "regex" in node:
            # Regex literals serialize their value as null; they are not foldable.
            value = node.get("raw") or ""
        return Literal(offset=offset, value=value, raw=node.get("raw"))
    if kind == "MemberExpression":
        return MemberExpression(
            offset=offset,
            object=_expression(_require(node, "object")),
            property=_expression(_require(node, "property")),
            computed=bool(node.get("computed", False)),
        )
    if kind == "CallExpression":
        return CallExpression(
            offset=offset,
            callee=_expression(_require(node, "callee")),
            arguments=tuple(_expression(argument) for argument in node.get("arguments") or []),
        )
    if kind == "AssignmentExpression":
        return AssignmentExpression(
            offset=offset,
            operator=node.get("operator", "="),
            target=_expression(_require(node, "left")),
            value=_expression(_require(node, "right")),
        )
    if kind == "UpdateExpression":
        return UpdateExpression(
            offset=offset,
            operator=node.get("operator", "++"),
            target=_expression(_require(node, "argument")),
        )
    if kind == "ParenthesizedExpression":
        return _expression(_require(node, "expression"))
    return Operation(
        offset=offset,
        syntax=kind,
        operator=node.get("operator"),
        operands=tuple(_expression(child) for child in _child_nodes(node)),
    )


def _child_nodes(node: dict) -> list[dict]:
    children: list[dict] = []
    for key, value in node.items():
        if key in _NON_CHILD_KEYS:
            continue
        if isinstance(value, dict) and "type" in value:
            children.append(value)
        elif isinstance(value, list):
            children.extend(item for item in value if isinstance(item, dict) and "type" in item)
    children.sort(key=lambda child: child.get("start", 0))
    return children


def _block(node: Any, owner: dict, key: str) -> Block:
    """Convert a statement body, wrapping a lone statement in a block."""
    if not isinstance(node, dict):
        raise MalformedTreeError(str(owner.get("type")), _offset(owner), f"missing '{key}'")
    if node.get("type") == "BlockStatement":
        return Block(offset=_offset(node), body=_statements(node.get("body") or []))
    return Block(offset=_offset(node), body=(_statement(node),))


def _statements(nodes: list) -> tuple[Node, ...]:
    return tuple(_statement(node) for node in nodes)


def _statement(node: Any) -> Node:
    if not isinstance(node, dict) or "type" not in node:
        raise MalformedTreeError("statement", None, f"expected a node, got {type(node).__name__}")
    kind = node["type"]
    offset = _offset(node)

    if kind == "ExpressionStatement":
        return ExpressionStatement(offset=offset, expression=_expression(_require(node, "expression")))
    if kind == "VariableDeclaration":
        declarators = node.get("declarations") or []
        if not isinstance(declarators, list):
            raise MalformedTreeError(kind, offset, "'declarations' must be a list")
        declarations = []
        for declarator in declarators:
            if not isinstance(declarator, dict):
                raise MalformedTreeError(
                    kind, offset, f"expected a declarator, got {type(declarator).__name__}"
                )
            target = declarator.get("id")
            if not isinstance(target, dict):
                target = {}
            declarations.append(
                Declarator(
                    offset=_offset(declarator),
                    name=target.get("name") if target.get("type") == "Identifier" else None,
                    init=_expression(declarator.get("init")),
                )
            )
        return VariableDeclaration(offset=offset, declarations=tuple(declarations))
    if kind == "WhileStatement":
        return WhileStatement(
            offset=offset,
            test=_expression(_require(node, "test")),
            body=_block(node.get("body"), node, "body"),
        )
    if kind == "IfStatement":
        alternate = node.get("alternate")
        return IfStatement(
            offset=offset,
            test=_expression(_require(node, "test")),
            consequent=_block(node.get("consequent"), node, "consequent"),
            alternate=_block(alternate, node, "alternate") if alternate is not None else None,
        )
    if kind == "ThrowStatement":
        return ThrowStatement(offset=offset, argument=_expression(node.get("argument")))
    if kind in {"BreakStatement", "ContinueStatement"}:
        label = (node.get("label") or {}).get("name")
        if label is not None:
            logger.debug("%s at %d: label '%s' ignored", kind, offset, label)
        cls = BreakStatement if kind == "BreakStatement" else ContinueStatement
        return cls(offset=offset, label=label)
    if kind == "TryStatement":
        handler = node.get("handler")
        if not isinstance(handler, dict):
            raise MalformedTreeError(kind, offset, "a catch clause is required")
        param = handler.get("param") or {}
        finalizer = node.get("finalizer")
        return TryStatement(
            offset=offset,
            block=_block(node.get("block"), node, "block"),
            handler=_block(handler.get("body"), handler, "body"),
            finalizer=_block(finalizer, node, "finalizer") if finalizer is not None else None,
            param=param.get("name") if param.get("type") == "Identifier" else None,
        )
    if kind == "BlockStatement":
        return Block(offset=offset, body=_statements(node.get("body") or []))

    logger.debug("unsupported statement %s at %d", kind, offset)
    return UnsupportedStatement(offset=offset, syntax=kind)


def program_from_estree(tree: dict) -> Program:
    """Convert an ESTree `Program` (as produced by acorn) into the analysis tree."""
    if not isinstance(tree, dict) or tree.get("type") != "Program":
        found = tree.get("type") if isinstance(tree, dict) else type(tree).__name__
        raise MalformedTreeError("Program", None, f"expected an ESTree Program, got {found}")
    return Program(offset=_offset(tree), body=_statements(tree.get("body") or []))


def load_estree_file(path: str | Path) -> Program:
    """Load a JSON-serialized ESTree program."""
    path = Path(path)
    try:
        tree = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise MalformedTreeError("Program", None, f"{path} is not valid JSON: {exc}") from exc
    return program_from_estree(tree)
