# tests/conftest.py
"""
ESTree builders for hand-written test programs.

Every helper takes the node's character offset explicitly so tests can
state the labels they expect. Offsets only need to be unique and follow
source order; they do not have to match a real source text.
"""

from __future__ import annotations

import json

import pytest

from jslive.analysis.pipeline import analyze
from jslive.config import AnalysisConfig
from jslive.parsing.estree import program_from_estree


def ident(at, name):
    return {"type": "Identifier", "start": at, "end": at + len(name), "name": name}


def lit(at, value):
    return {"type": "Literal", "start": at, "value": value, "raw": json.dumps(value)}


def binary(at, operator, left, right):
    return {"type": "BinaryExpression", "start": at, "operator": operator, "left": left, "right": right}


def member(at, obj, prop, computed=False):
    return {"type": "MemberExpression", "start": at, "object": obj, "property": prop, "computed": computed}


def stmt(expression):
    return {"type": "ExpressionStatement", "start": expression["start"], "expression": expression}


def assign(at, name, value, operator="="):
    return stmt(
        {
            "type": "AssignmentExpression",
            "start": at,
            "operator": operator,
            "left": ident(at, name),
            "right": value,
        }
    )


def update(at, name, operator="++"):
    return stmt(
        {
            "type": "UpdateExpression",
            "start": at,
            "operator": operator,
            "prefix": False,
            "argument": ident(at, name),
        }
    )


def call(at, callee, *arguments):
    return {"type": "CallExpression", "start": at, "callee": callee, "arguments": list(arguments)}


def log(at, *arguments):
    """`console.log(...)` statement at `at`."""
    callee = member(at, ident(at, "console"), ident(at + 8, "log"))
    return stmt(call(at, callee, *arguments))


def declare(at, name, init=None):
    return {
        "type": "VariableDeclaration",
        "start": at,
        "kind": "let",
        "declarations": [
            {"type": "VariableDeclarator", "start": at + 4, "id": ident(at + 4, name), "init": init}
        ],
    }


def block(at, *body):
    return {"type": "BlockStatement", "start": at, "body": list(body)}


def while_(at, test, body):
    return {"type": "WhileStatement", "start": at, "test": test, "body": body}


def if_(at, test, consequent, alternate=None):
    return {"type": "IfStatement", "start": at, "test": test, "consequent": consequent, "alternate": alternate}


def throw(at, argument=None):
    return {"type": "ThrowStatement", "start": at, "argument": argument or lit(at + 6, "e")}


def brk(at):
    return {"type": "BreakStatement", "start": at, "label": None}


def cont(at):
    return {"type": "ContinueStatement", "start": at, "label": None}


def try_(at, body, handler, finalizer=None):
    return {
        "type": "TryStatement",
        "start": at,
        "block": body,
        "handler": {"type": "CatchClause", "start": handler["start"] - 1, "param": None, "body": handler},
        "finalizer": finalizer,
    }


def program(*body):
    return {"type": "Program", "start": 0, "body": list(body), "sourceType": "script"}


def run(tree, **config):
    """Convert an ESTree dict and run the full analysis on it."""
    return analyze(program_from_estree(tree), AnalysisConfig(**config))


# ── shared programs ──────────────────────────────────────────────

@pytest.fixture
def loop_with_break_and_continue():
    """
    i = 3
    while (i > 0) {
      i--
      if (i == 1) { break }
      if (i == 2) { continue }
      console.log(i)
    }
    console.log(i)
    """
    return program(
        assign(0, "i", lit(4, 3)),
        while_(
            7,
            binary(14, ">", ident(14, "i"), lit(18, 0)),
            block(
                21,
                update(23, "i", "--"),
                if_(28, binary(32, "==", ident(32, "i"), lit(37, 1)), block(40, brk(42))),
                if_(50, binary(54, "==", ident(54, "i"), lit(59, 2)), block(62, cont(64))),
                log(75, ident(87, "i")),
            ),
        ),
        log(95, ident(107, "i")),
    )


@pytest.fixture
def dead_store_program():
    """x = 1;\\ny = 2;\\nconsole.log(x)"""
    return program(
        assign(0, "x", lit(4, 1)),
        assign(7, "y", lit(11, 2)),
        log(14, ident(26, "x")),
    )
