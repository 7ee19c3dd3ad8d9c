# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Command-line driver: read `.ll` files, run the enabled analyses, report.

Exit codes: 0 clean, 1 out-of-bounds access or unreadable/malformed input,
2 usage errors.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from boundscheck.config import Options, ViolationPolicy
from boundscheck.core.diagnostics import Diagnostic, diag_to_json, format_human
from boundscheck.core.span import Span
from boundscheck.ir.llvm_bridge import declarations_to_llvmlite, verify_assembly
from boundscheck.ir.nodes import Module
from boundscheck.ir.parser import IRParseError, parse_module
from boundscheck.ir.printer import format_module
from boundscheck.passes.manager import PassManager
from boundscheck.passes.reporter import FatalBoundsError, violation_to_diagnostic

_TRACE_LOGGER = "boundscheck"

# (diagnostic, phase, source) triples in report order.
_Report = List[Tuple[Diagnostic, str, str]]


def _build_parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(
		prog="boundscheck",
		description="Detect statically provable out-of-bounds array accesses in LLVM IR",
	)
	p.add_argument("sources", nargs="+", help="LLVM assembly file(s) (.ll); '-' reads stdin")
	p.add_argument(
		"--json",
		action="store_true",
		default=None,
		help="Emit diagnostics as JSON (phase/message/code/file/line/column/notes) on stdout",
	)
	p.add_argument(
		"--policy",
		choices=[policy.value for policy in ViolationPolicy],
		default=None,
		help="abort at the first violation (default) or collect every violation",
	)
	p.add_argument(
		"--no-bounds-check",
		dest="enabled",
		action="store_false",
		default=None,
		help="Disable the bounds-check pass (input is still parsed)",
	)
	p.add_argument("--debug", action="store_true", default=None, help="Trace every instruction and decision on stderr")
	p.add_argument("--verify", action="store_true", default=None, help="Verify the input with LLVM before analysis")
	p.add_argument(
		"--emit-decls",
		action="store_true",
		default=None,
		help="Print the external declarations the analysis ensured (e.g. @__assert) as LLVM IR",
	)
	p.add_argument("--dump-ir", action="store_true", default=None, help="Print the parsed IR before analysis")
	return p


def _install_trace_handler() -> logging.Handler:
	handler = logging.StreamHandler(sys.stderr)
	handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
	logger = logging.getLogger(_TRACE_LOGGER)
	logger.addHandler(handler)
	logger.setLevel(logging.DEBUG)
	return handler


def _remove_trace_handler(handler: logging.Handler) -> None:
	logger = logging.getLogger(_TRACE_LOGGER)
	logger.removeHandler(handler)
	logger.setLevel(logging.NOTSET)


def _read_source(source: str) -> Tuple[str, str]:
	"""Return (text, module name) for a path or '-'."""
	if source == "-":
		return sys.stdin.read(), "<stdin>"
	path = Path(source)
	return path.read_text(), path.name


def _load_unit(source: str, options: Options) -> Module:
	text, name = _read_source(source)
	if options.verify:
		verify_assembly(text)
	return parse_module(text, name=name)


def _emit(report: _Report, options: Options, exit_code: int) -> int:
	if options.json:
		payload = {
			"exit_code": exit_code,
			"diagnostics": [diag_to_json(d, phase, source) for d, phase, source in report],
		}
		print(json.dumps(payload))
	else:
		for d, _phase, source in report:
			print(format_human(d, source), file=sys.stderr)
			for note in d.notes:
				print(f"  note: {note}", file=sys.stderr)
	return exit_code


def run(sources: List[str], options: Options) -> int:
	"""Analyze `sources` in order under `options`; returns the exit code."""
	manager = PassManager.from_options(options)
	report: _Report = []
	for source in sources:
		try:
			unit = _load_unit(source, options)
		except IRParseError as exc:
			diag = Diagnostic(message=exc.message, phase="parser", span=Span(line=exc.line))
			report.append((diag, "parser", source))
			return _emit(report, options, 1)
		except OSError as exc:
			diag = Diagnostic(message=f"cannot read input: {exc.strerror or exc}", phase="driver")
			report.append((diag, "driver", source))
			return _emit(report, options, 1)

		if options.dump_ir:
			print(format_module(unit), end="")

		try:
			outcome = manager.run(unit)
		except FatalBoundsError as exc:
			report.extend((d, "bounds-check", source) for d in exc.diagnostics)
			return _emit(report, options, 1)
		report.extend((violation_to_diagnostic(v, fatal=False), "bounds-check", source) for v in outcome.violations)

		if options.emit_decls:
			print(str(declarations_to_llvmlite(unit)), end="")

	return _emit(report, options, 1 if report else 0)


def main(argv: Optional[List[str]] = None) -> int:
	args = _build_parser().parse_args(argv)
	try:
		options = Options.from_env().with_overrides(
			enabled=args.enabled,
			policy=ViolationPolicy(args.policy) if args.policy is not None else None,
			debug=args.debug,
			json=args.json,
			verify=args.verify,
			emit_decls=args.emit_decls,
			dump_ir=args.dump_ir,
		)
	except ValueError as exc:
		print(f"boundscheck: error: {exc}", file=sys.stderr)
		return 2

	handler = _install_trace_handler() if options.debug else None
	try:
		return run(list(args.sources), options)
	finally:
		if handler is not None:
			_remove_trace_handler(handler)


if __name__ == "__main__":
	raise SystemExit(main())
