# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Turn bounds violations into diagnostics and the fatal error the driver acts on."""

from __future__ import annotations

from typing import List, NoReturn, Sequence

from boundscheck.core.diagnostics import Diagnostic
from boundscheck.passes.bounds_check import BoundsViolation

BOUNDS_DIAG_CODE = "BOUNDS_OUT_OF_RANGE"
BOUNDS_PHASE = "bounds-check"


class FatalBoundsError(Exception):
	"""Compilation must stop: at least one out-of-bounds access was proven."""

	def __init__(self, diagnostics: List[Diagnostic]) -> None:
		super().__init__(diagnostics[0].message if diagnostics else "bounds check failed")
		self.diagnostics = diagnostics


def format_violation(index: int, length: int, fatal: bool = True) -> str:
	message = f"Wrong assignment to index {index} (zero-based) while array has length {length}!"
	# Collected violations do not stop the run.
	return f"{message} Aborting..." if fatal else message


def violation_to_diagnostic(violation: BoundsViolation, fatal: bool = True) -> Diagnostic:
	notes = [f"in function @{violation.function}, block %{violation.block}"]
	if violation.instr_text:
		notes.append(f"instruction: {violation.instr_text}")
	return Diagnostic(
		message=format_violation(violation.index, violation.length, fatal),
		code=BOUNDS_DIAG_CODE,
		phase=BOUNDS_PHASE,
		span=violation.span,
		notes=tuple(notes),
	)


def report_fatal(violations: Sequence[BoundsViolation]) -> NoReturn:
	raise FatalBoundsError([violation_to_diagnostic(v) for v in violations])


__all__ = [
	"BOUNDS_DIAG_CODE",
	"BOUNDS_PHASE",
	"FatalBoundsError",
	"format_violation",
	"violation_to_diagnostic",
	"report_fatal",
]
