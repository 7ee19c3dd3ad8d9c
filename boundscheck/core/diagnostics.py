# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Error records shared by the IR reader, the analyses and the driver.

Every finding boundscheck reports is fatal for the run, so a record has no
severity: the driver always renders it as an error. The analyses never print;
the driver decides between human lines on stderr and a JSON payload.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

from .span import Span


@dataclass(frozen=True)
class Diagnostic:
	message: str
	code: str | None = None
	# "parser", "driver", "bounds-check"; None lets the driver supply the phase
	# it was running.
	phase: str | None = None
	span: Span = Span()
	notes: Tuple[str, ...] = ()


def format_human(diag: Diagnostic, source: Union[str, Path]) -> str:
	"""`file:line:col: error: message`, the file taken from debug info when known."""
	file = diag.span.file or str(source)
	return f"{file}:{diag.span.position()}: error: {diag.message}"


def diag_to_json(diag: Diagnostic, phase: str, source: Union[str, Path]) -> dict:
	return {
		"phase": diag.phase or phase,
		"message": diag.message,
		"code": diag.code,
		"file": diag.span.file or str(source),
		"line": diag.span.line,
		"column": diag.span.column,
		"notes": list(diag.notes),
	}


__all__ = ["Diagnostic", "format_human", "diag_to_json"]
