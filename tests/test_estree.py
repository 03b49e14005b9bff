# tests/test_estree.py
"""Tests for ESTree loading, label assignment and the acorn front-end wrapper."""

import json
import subprocess
from unittest.mock import patch

import pytest

from jslive.intermediate_representation.ast import (
    AssignmentExpression,
    Block,
    CallExpression,
    IfStatement,
    Literal,
    MalformedTreeError,
    Operation,
    Program,
    TryStatement,
    UnsupportedStatement,
    WhileStatement,
    assign_labels,
    program_point,
    referenced_names,
)
from jslive.parsing import acorn
from jslive.parsing.estree import load_estree_file, program_from_estree
from tests.conftest import (
    assign, binary, block, brk, declare, ident, if_, lit, log, member,
    program, throw, try_, while_,
)


class TestLoader:

    def test_statement_kinds(self):
        tree = program(
            declare(0, "x", lit(8, 1)),
            assign(11, "x", lit(15, 2)),
            while_(18, ident(25, "x"), block(28, brk(30))),
            try_(40, block(44, throw(46)), block(60)),
        )
        converted = program_from_estree(tree)
        assert isinstance(converted, Program)
        assert [node.kind for node in converted.body] == [
            "VariableDeclaration",
            "ExpressionStatement",
            "WhileStatement",
            "TryStatement",
        ]
        declaration = converted.body[0].declarations[0]
        assert declaration.name == "x"
        assert isinstance(declaration.init, Literal)
        assert isinstance(converted.body[1].expression, AssignmentExpression)

    def test_lone_statement_bodies_are_wrapped(self):
        tree = program(
            if_(0, ident(4, "a"), assign(7, "x", lit(11, 1)), if_(18, ident(22, "b"), brk(25))),
        )
        statement = program_from_estree(tree).body[0]
        assert isinstance(statement, IfStatement)
        assert isinstance(statement.consequent, Block)
        assert statement.consequent.offset == 7
        assert isinstance(statement.alternate.body[0], IfStatement)

    def test_unknown_statements_become_unsupported(self):
        tree = program({"type": "ForStatement", "start": 0, "init": None, "test": None,
                        "update": None, "body": block(9)})
        statement = program_from_estree(tree).body[0]
        assert isinstance(statement, UnsupportedStatement)
        assert statement.kind == "ForStatement"

    def test_unknown_expressions_keep_their_operands(self):
        conditional = {"type": "ConditionalExpression", "start": 4, "test": ident(4, "c"),
                       "consequent": ident(8, "a"), "alternate": ident(12, "b")}
        statement = program_from_estree(program(assign(0, "x", conditional))).body[0]
        value = statement.expression.value
        assert isinstance(value, Operation)
        assert value.kind == "ConditionalExpression"
        assert referenced_names(value) == ["c", "a", "b"]

    def test_regex_literals_are_not_null(self):
        regex = {"type": "Literal", "start": 4, "value": None, "raw": "/a/", "regex": {"pattern": "a", "flags": ""}}
        statement = program_from_estree(program(if_(0, regex, block(8)))).body[0]
        assert statement.test.value == "/a/"
        assert statement.test.truth is None

    def test_console_log_callee_name(self):
        statement = program_from_estree(program(log(0, ident(12, "a")))).body[0]
        assert isinstance(statement.expression, CallExpression)
        assert statement.expression.callee_name() == "console.log"

    def test_computed_member_has_no_dotted_name(self):
        callee = member(0, ident(0, "console"), lit(8, "log"), computed=True)
        tree = program({"type": "ExpressionStatement", "start": 0,
                        "expression": {"type": "CallExpression", "start": 0, "callee": callee, "arguments": []}})
        statement = program_from_estree(tree).body[0]
        assert statement.expression.callee_name() is None

    def test_catch_parameter(self):
        tree = program(try_(0, block(4), block(20)))
        tree["body"][0]["handler"]["param"] = ident(13, "err")
        statement = program_from_estree(tree).body[0]
        assert isinstance(statement, TryStatement)
        assert statement.param == "err"


class TestMalformedTrees:

    def test_try_without_catch(self):
        tree = program({"type": "TryStatement", "start": 0, "block": block(4), "handler": None,
                        "finalizer": block(15)})
        with pytest.raises(MalformedTreeError) as excinfo:
            program_from_estree(tree)
        assert excinfo.value.kind == "TryStatement"
        assert excinfo.value.offset == 0

    def test_if_without_test(self):
        tree = program({"type": "IfStatement", "start": 3, "test": None, "consequent": block(9),
                        "alternate": None})
        with pytest.raises(MalformedTreeError, match="test"):
            program_from_estree(tree)

    def test_while_without_body(self):
        tree = program({"type": "WhileStatement", "start": 0, "test": ident(7, "c"), "body": None})
        with pytest.raises(MalformedTreeError, match="body"):
            program_from_estree(tree)

    def test_null_declarator(self):
        tree = program({"type": "VariableDeclaration", "start": 0, "kind": "let", "declarations": [None]})
        with pytest.raises(MalformedTreeError, match="declarator") as excinfo:
            program_from_estree(tree)
        assert excinfo.value.kind == "VariableDeclaration"
        assert excinfo.value.offset == 0

    def test_declarations_not_a_list(self):
        tree = program({"type": "VariableDeclaration", "start": 3, "declarations": {"id": None}})
        with pytest.raises(MalformedTreeError, match="list"):
            program_from_estree(tree)

    def test_missing_offset(self):
        with pytest.raises(MalformedTreeError, match="start"):
            program_from_estree(program({"type": "BreakStatement", "label": None}))

    def test_not_a_program(self):
        with pytest.raises(MalformedTreeError, match="Program"):
            program_from_estree(block(0))

    def test_invalid_json_file(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(MalformedTreeError, match="not valid JSON"):
            load_estree_file(path)

    def test_json_file_round_trip(self, tmp_path, dead_store_program):
        path = tmp_path / "program.json"
        path.write_text(json.dumps(dead_store_program), encoding="utf-8")
        assert load_estree_file(path) == program_from_estree(dead_store_program)


class TestLabels:

    def test_labels_are_statement_and_test_offsets(self, loop_with_break_and_continue):
        labels = assign_labels(program_from_estree(loop_with_break_and_continue))
        assert sorted(labels) == [0, 14, 23, 32, 42, 54, 64, 75, 95]
        assert labels[14].kind == "BinaryExpression"
        assert labels[42].kind == "BreakStatement"

    def test_program_point(self):
        converted = program_from_estree(
            program(while_(0, ident(7, "c"), block(10)), try_(20, block(24), block(30)))
        )
        assert program_point(converted.body[0]) == 7
        assert isinstance(converted.body[0], WhileStatement)
        assert program_point(converted.body[1]) is None


class TestAcornFrontend:

    def test_empty_source_skips_the_front_end(self):
        with patch.object(acorn.subprocess, "run") as run:
            result = acorn.build_program_with_acorn("   \n")
        assert result == Program(offset=0)
        run.assert_not_called()

    def test_parses_front_end_output(self, dead_store_program):
        completed = subprocess.CompletedProcess(
            args=[], returncode=0, stdout=json.dumps(dead_store_program), stderr=""
        )
        with patch.object(acorn.subprocess, "run", return_value=completed) as run:
            result = acorn.build_program_with_acorn("x = 1;\ny = 2;\nconsole.log(x)")
        assert result == program_from_estree(dead_store_program)
        assert run.call_args.kwargs["input"] == "x = 1;\ny = 2;\nconsole.log(x)"

    def test_front_end_failure(self):
        completed = subprocess.CompletedProcess(
            args=[], returncode=1, stdout="", stderr="SyntaxError: Unexpected token (1:2)"
        )
        with patch.object(acorn.subprocess, "run", return_value=completed):
            with pytest.raises(RuntimeError, match="Unexpected token"):
                acorn.build_program_with_acorn("x = ;")

    def test_missing_interpreter(self, monkeypatch):
        monkeypatch.setenv("NODE_CMD", "definitely-not-node")
        with patch.object(acorn.subprocess, "run", side_effect=FileNotFoundError("nope")):
            with pytest.raises(RuntimeError, match="definitely-not-node"):
                acorn.build_program_with_acorn("x = 1")

    def test_garbage_output(self):
        completed = subprocess.CompletedProcess(args=[], returncode=0, stdout="<html>", stderr="")
        with patch.object(acorn.subprocess, "run", return_value=completed):
            with pytest.raises(RuntimeError, match="JSON"):
                acorn.build_program_with_acorn("x = 1")

    def test_load_program_dispatches_on_suffix(self, tmp_path, dead_store_program):
        dump = tmp_path / "program.json"
        dump.write_text(json.dumps(dead_store_program), encoding="utf-8")
        tree, source = acorn.load_program(dump)
        assert source is None
        assert len(tree) == 3

        script = tmp_path / "program.js"
        script.write_text("x = 1;\ny = 2;\nconsole.log(x)", encoding="utf-8")
        with patch.object(acorn, "_run_acorn", return_value=dead_store_program):
            tree, source = acorn.load_program(script)
        assert source.startswith("x = 1;")
        assert len(tree) == 3
