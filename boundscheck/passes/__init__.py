# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Analysis passes over parsed IR.

Pipeline placement:
  IR text → ir.parser → Module → PassManager(BoundsCheck) → diagnostics

Public API:
  - collect_geps: ordered worklist of getelementptr instructions
  - BoundsCheck: the out-of-bounds analysis
  - PassManager / create_pass: explicit pass construction and policy
  - FatalBoundsError / violation_to_diagnostic: reporting
"""

from .collector import WorkItem, collect_geps
from .bounds_check import (
	BoundsCheck,
	BoundsViolation,
	FunctionResult,
	Verdict,
	decide,
	recover_array_length,
	recover_index,
)
from .reporter import FatalBoundsError, format_violation, report_fatal, violation_to_diagnostic
from .manager import PASS_FACTORIES, ModuleResult, PassManager, UnknownPassError, create_pass

__all__ = [
	"WorkItem",
	"collect_geps",
	"BoundsCheck",
	"BoundsViolation",
	"FunctionResult",
	"Verdict",
	"decide",
	"recover_array_length",
	"recover_index",
	"FatalBoundsError",
	"format_violation",
	"report_fatal",
	"violation_to_diagnostic",
	"PASS_FACTORIES",
	"ModuleResult",
	"PassManager",
	"UnknownPassError",
	"create_pass",
]
