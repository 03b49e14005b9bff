from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from jslive.analysis.pipeline import analyze
from jslive.config import AnalysisConfig
from jslive.intermediate_representation.ast import MalformedTreeError
from jslive.parsing.acorn import load_program
from jslive.reporting.dot import render_cfg_dot, render_dot_file
from jslive.reporting.json_report import render_json_report
from jslive.reporting.text import render_text_report

EXIT_OK = 0
EXIT_FINDINGS = 1
EXIT_ERROR = 2

_log = logging.getLogger("jslive")


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    _log.setLevel(level)
    if _log.handlers:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s", datefmt="%H:%M:%S")
    )
    _log.addHandler(handler)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jslive",
        description="Live-variable and dead-code analysis for a JavaScript subset",
    )

    parser.add_argument(
        "file",
        help="JavaScript source file, or a .json ESTree dump of one",
    )

    parser.add_argument(
        "--format",
        choices=["text", "dot", "json"],
        default="text",
        help="Report format (default: text)",
    )

    parser.add_argument(
        "-o", "--output",
        default=None,
        help="Write the report to this file instead of stdout",
    )

    parser.add_argument(
        "--render",
        default=None,
        metavar="IMAGE",
        help="Also render the CFG to a PNG image (needs the graphviz package)",
    )

    parser.add_argument(
        "--observer",
        action="append",
        default=None,
        help="Call whose identifier arguments count as reads (repeatable; default: console.log)",
    )

    parser.add_argument(
        "--max-passes",
        type=int,
        default=None,
        help="Safety cap on solver passes",
    )

    parser.add_argument(
        "--fail-on-findings",
        action="store_true",
        help="Exit with status 1 when any diagnostic is reported",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        config = AnalysisConfig.from_env()
        if args.observer:
            config = replace(config, observers=tuple(args.observer))
        if args.max_passes is not None:
            config = replace(config, max_passes=args.max_passes)
        program, source = load_program(args.file)
        result = analyze(program, config)
    except (OSError, ValueError, RuntimeError) as exc:
        # MalformedTreeError is a ValueError; the front-end raises RuntimeError.
        kind = "malformed syntax tree" if isinstance(exc, MalformedTreeError) else "error"
        _log.error("%s: %s", kind, exc)
        return EXIT_ERROR

    if args.format == "dot":
        report = render_cfg_dot(result, name=Path(args.file).stem)
    elif args.format == "json":
        report = render_json_report(result)
    else:
        report = render_text_report(result, source)

    if args.output:
        Path(args.output).write_text(report, encoding="utf-8")
    else:
        sys.stdout.write(report)

    if args.render:
        try:
            render_dot_file(render_cfg_dot(result, name=Path(args.file).stem), args.render)
        except RuntimeError as exc:
            _log.error("%s", exc)
            return EXIT_ERROR

    for diagnostic in result.diagnostics:
        _log.warning("%s", diagnostic)

    if args.fail_on_findings and result.diagnostics:
        return EXIT_FINDINGS
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
