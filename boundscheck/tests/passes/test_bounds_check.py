# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Bounds check over parsed IR.

Each case wraps one or more getelementptr lines in a single-block function and
checks what the analysis proves (or declines to prove).
"""

from __future__ import annotations

import logging

import pytest

from boundscheck.core.span import Span
from boundscheck.ir import parse_module
from boundscheck.ir.printer import format_function
from boundscheck.passes import BoundsCheck, Verdict, decide, recover_array_length, recover_index
from boundscheck.passes.reporter import format_violation


def _unit(*body: str, prelude: str = "  %a = alloca [5 x i32], align 16"):
	lines = ["define i32 @main(i64 %i) {", "entry:", prelude, *[f"  {b}" for b in body], "  ret i32 0", "}", ""]
	unit = parse_module("\n".join(lines), name="case.ll")
	return unit, unit.functions["main"]


def _check(*body: str, **kw):
	unit, fn = _unit(*body, **kw)
	return BoundsCheck().run_on_function(fn, unit)


def test_constant_index_in_bounds():
	result = _check("%p = getelementptr inbounds [5 x i32], [5 x i32]* %a, i64 0, i64 3")
	assert result.ok
	assert result.in_bounds == 1
	assert result.unanalyzable == 0


def test_constant_index_out_of_bounds():
	result = _check("%p = getelementptr inbounds [5 x i32], [5 x i32]* %a, i64 0, i64 5")
	assert not result.ok
	(violation,) = result.violations
	assert (violation.function, violation.block) == ("main", "entry")
	assert (violation.index, violation.length) == (5, 5)
	assert violation.instr_text.startswith("%p = getelementptr")
	assert format_violation(violation.index, violation.length) == (
		"Wrong assignment to index 5 (zero-based) while array has length 5! Aborting..."
	)


def test_opaque_pointer_uses_source_type():
	result = _check("%p = getelementptr inbounds [5 x i32], ptr %a, i64 0, i64 7")
	assert [(v.index, v.length) for v in result.violations] == [(7, 5)]


def test_runtime_index_is_not_analyzable():
	result = _check("%p = getelementptr inbounds [5 x i32], ptr %a, i64 0, i64 %i")
	assert result.ok
	assert result.unanalyzable == 1


@pytest.mark.parametrize(
	"gep, prelude",
	[
		("%p = getelementptr inbounds i32, i32* %s, i64 7", "  %s = alloca i32, align 4"),
		("%p = getelementptr inbounds i32, ptr %s, i64 7", "  %s = alloca i32, align 4"),
		(
			"%p = getelementptr inbounds %struct.S, %struct.S* %s, i32 0, i32 9",
			"  %s = alloca %struct.S, align 4",
		),
		("%p = getelementptr inbounds { i32, i32 }, ptr %s, i32 0, i32 9", "  %s = alloca { i32, i32 }, align 4"),
		("%p = getelementptr i32, <2 x ptr> %s, <2 x i64> <i64 9, i64 9>", "  %s = alloca i32, align 4"),
	],
)
def test_non_array_bases_are_not_analyzable(gep, prelude):
	result = _check(gep, prelude=prelude)
	assert result.ok
	assert result.unanalyzable == 1


def test_decayed_array_pointer_is_not_analyzable():
	result = _check(
		"%decay = getelementptr inbounds [5 x i32], [5 x i32]* %a, i64 0, i64 0",
		"%p = getelementptr inbounds i32, i32* %decay, i64 9",
	)
	assert result.ok
	assert (result.in_bounds, result.unanalyzable) == (1, 1)


def test_gep_without_indices_is_not_analyzable():
	result = _check("%p = getelementptr [5 x i32], ptr %a")
	assert result.ok
	assert result.unanalyzable == 1


def test_global_array_base():
	result = _check("%p = getelementptr inbounds [4 x i8], ptr @buf, i64 0, i64 4")
	assert [(v.index, v.length) for v in result.violations] == [(4, 4)]


@pytest.mark.parametrize("index", ["i64 -1", "i32 -1", "i8 -128"])
def test_negative_constant_index_is_not_analyzable(index):
	unit, fn = _unit(f"%p = getelementptr inbounds [5 x i32], ptr %a, i64 0, {index}")
	assert recover_index(fn.blocks["entry"].instructions[1]) is None
	result = BoundsCheck().run_on_function(fn, unit)
	assert result.ok
	assert result.unanalyzable == 1


def test_zero_length_array():
	result = _check("%p = getelementptr inbounds [0 x i32], ptr %a, i64 0, i64 0")
	assert [(v.index, v.length) for v in result.violations] == [(0, 0)]


def test_nested_array_compares_last_index_with_outer_length():
	prelude = "  %m = alloca [3 x [4 x i32]], align 16"
	ok = _check("%p = getelementptr inbounds [3 x [4 x i32]], ptr %m, i64 0, i64 1, i64 2", prelude=prelude)
	assert ok.ok
	bad = _check("%p = getelementptr inbounds [3 x [4 x i32]], ptr %m, i64 0, i64 1, i64 3", prelude=prelude)
	assert [(v.index, v.length) for v in bad.violations] == [(3, 3)]


def test_per_dimension_geps_check_each_level():
	result = _check(
		"%row = getelementptr inbounds [3 x [4 x i32]], ptr %m, i64 0, i64 1",
		"%cell = getelementptr inbounds [4 x i32], ptr %row, i64 0, i64 4",
		prelude="  %m = alloca [3 x [4 x i32]], align 16",
	)
	assert result.in_bounds == 1
	assert [(v.index, v.length) for v in result.violations] == [(4, 4)]


def test_verdict_matches_index_against_length():
	for length in range(0, 5):
		for index in range(0, 7):
			gep = f"%p = getelementptr inbounds [{length} x i8], ptr %a, i64 0, i64 {index}"
			result = _check(gep)
			assert bool(result.violations) == (index >= length), gep


def test_decide():
	assert decide(None, 3) is Verdict.UNANALYZABLE
	assert decide(5, None) is Verdict.UNANALYZABLE
	assert decide(5, 4) is Verdict.IN_BOUNDS
	assert decide(5, 5) is Verdict.VIOLATION


def test_recovery_helpers():
	_, fn = _unit("%p = getelementptr inbounds [5 x i32], ptr %a, i64 0, i64 %i")
	gep = fn.blocks["entry"].instructions[1]
	assert recover_array_length(gep) == 5
	assert recover_index(gep) is None


TWO_BAD = (
	"%p = getelementptr inbounds [5 x i32], ptr %a, i64 0, i64 6",
	"%q = getelementptr inbounds [5 x i32], ptr %a, i64 0, i64 2",
	"%r = getelementptr inbounds [5 x i32], ptr %a, i64 0, i64 9",
)


def test_stops_at_first_violation_by_default():
	result = _check(*TWO_BAD)
	assert [v.index for v in result.violations] == [6]
	assert result.in_bounds == 0


def test_collects_every_violation_in_program_order():
	unit, fn = _unit(*TWO_BAD)
	result = BoundsCheck(stop_at_first=False).run_on_function(fn, unit)
	assert [v.index for v in result.violations] == [6, 9]
	assert result.in_bounds == 1


def test_function_is_never_modified():
	unit, fn = _unit(*TWO_BAD)
	before = format_function(fn)
	instructions = list(fn.blocks["entry"].instructions)
	result = BoundsCheck(stop_at_first=False).run_on_function(fn, unit)
	assert result.modified is False
	assert format_function(fn) == before
	assert fn.blocks["entry"].instructions == instructions


def test_violation_carries_debug_location():
	text = "\n".join(
		[
			'source_filename = "t.c"',
			"define void @f() {",
			"entry:",
			"  %a = alloca [2 x i32], align 4",
			"  %p = getelementptr inbounds [2 x i32], ptr %a, i64 0, i64 2, !dbg !12",
			"  ret void",
			"}",
			'!1 = !DIFile(filename: "t.c", directory: "/tmp")',
			"!7 = distinct !DISubprogram(name: \"f\", scope: !1, file: !1, line: 1)",
			"!12 = !DILocation(line: 3, column: 5, scope: !7)",
			"",
		]
	)
	unit = parse_module(text)
	(violation,) = BoundsCheck().run_on_function(unit.functions["f"], unit).violations
	assert (violation.span.file, violation.span.line, violation.span.column) == ("t.c", 3, 5)


def test_violation_without_debug_info_has_empty_span():
	(violation,) = _check("%p = getelementptr inbounds [5 x i32], ptr %a, i64 0, i64 5").violations
	assert violation.span == Span()


def test_runs_without_a_unit():
	_, fn = _unit("%p = getelementptr inbounds [5 x i32], ptr %a, i64 0, i64 5")
	assert BoundsCheck().run_on_function(fn).violations


def test_trace_logging(caplog):
	caplog.set_level(logging.DEBUG, logger="boundscheck")
	_check(
		"%p = getelementptr inbounds [5 x i32], ptr %a, i64 0, i64 1",
		"%q = getelementptr inbounds [5 x i32], ptr %a, i64 0, i64 %i",
		"%r = getelementptr inbounds [5 x i32], ptr %a, i64 0, i64 5",
	)
	messages = [r.getMessage() for r in caplog.records]
	assert "BoundsCheck: processing function 'main'" in messages
	assert "GEP array has length: 5" in messages
	assert "GEP is composed of constant indices only, index: 1" in messages
	assert "GEP instruction uses the correct bounds" in messages
	assert "BoundsCheck could not analyse this instruction" in messages
	assert "GEP index 5 is out of bounds for length 5" in messages
