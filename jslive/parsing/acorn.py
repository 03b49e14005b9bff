from __future__ import annotations

import json
import os
import subprocess
from pathlib import Path

from ..intermediate_representation.ast import Program
from .estree import load_estree_file, program_from_estree

# Reads the program from stdin and prints its ESTree as JSON.
_ACORN_SCRIPT = (
    "const acorn = require('acorn');"
    "const source = require('fs').readFileSync(0, 'utf8');"
    "process.stdout.write(JSON.stringify("
    "acorn.parse(source, { ecmaVersion: 2023 })));"
)


def _run_acorn(source: str) -> dict:
    node_cmd = os.environ.get("NODE_CMD", "node")
    cmd = [node_cmd, "-e", _ACORN_SCRIPT]
    try:
        result = subprocess.run(
            cmd,
            input=source,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise RuntimeError(f"Could not start the JavaScript front-end '{node_cmd}'.") from exc
    if result.returncode != 0:
        stderr = result.stderr.strip() or result.stdout.strip()
        raise RuntimeError(f"acorn failed: {stderr}")
    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as exc:
        raise RuntimeError("Failed to parse acorn AST JSON output.") from exc


def build_program_with_acorn(source: str) -> Program:
    """Parse JavaScript source with acorn (through Node.js) into the analysis tree."""
    if not isinstance(source, str):
        raise TypeError("source must be a string containing JavaScript code.")
    if not source.strip():
        return Program(offset=0)
    return program_from_estree(_run_acorn(source))


def load_program(path: str | Path) -> tuple[Program, str | None]:
    """Load a program from a `.json` ESTree dump or from JavaScript source.

    Returns the tree and, for source files, the text it was parsed from.
    """
    path = Path(path)
    if path.suffix.lower() == ".json":
        return load_estree_file(path), None
    source = path.read_text(encoding="utf-8")
    return build_program_with_acorn(source), source
