# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from pathlib import Path

from boundscheck.core import Diagnostic, Span, diag_to_json, format_human
from boundscheck.ir.nodes import Location


def test_span_from_ir_location():
	loc = Location(file="t.c", line=4, column=3)
	span = Span.from_loc(loc)
	assert (span.file, span.line, span.column) == ("t.c", 4, 3)
	assert span.raw is loc
	assert span.is_known


def test_span_from_none_and_span_passthrough():
	assert Span.from_loc(None) == Span()
	span = Span(file="a.ll", line=1, column=2)
	assert Span.from_loc(span) is span


def test_span_position_marks_unknown_parts():
	assert Span().position() == "?:?"
	assert Span(line=7).position() == "7:?"
	assert not Span().is_known


def test_diagnostic_defaults():
	diag = Diagnostic(message="boom")
	assert diag.span == Span()
	assert diag.notes == ()
	assert diag.code is None and diag.phase is None


def test_format_human_prefers_span_file():
	diag = Diagnostic(message="bad index", span=Span(file="t.c", line=4, column=3))
	assert format_human(diag, "t.ll") == "t.c:4:3: error: bad index"


def test_format_human_falls_back_to_source():
	diag = Diagnostic(message="bad index")
	assert format_human(diag, Path("dir/t.ll")) == f"{Path('dir/t.ll')}:?:?: error: bad index"


def test_diag_to_json_shape():
	diag = Diagnostic(
		message="bad index",
		code="BOUNDS_OUT_OF_RANGE",
		span=Span(file="t.c", line=4, column=3),
		notes=("in function @main, block %entry",),
	)
	assert diag_to_json(diag, "bounds-check", "t.ll") == {
		"phase": "bounds-check",
		"message": "bad index",
		"code": "BOUNDS_OUT_OF_RANGE",
		"file": "t.c",
		"line": 4,
		"column": 3,
		"notes": ["in function @main, block %entry"],
	}


def test_diag_to_json_keeps_own_phase():
	diag = Diagnostic(message="x", phase="parser")
	payload = diag_to_json(diag, "bounds-check", "t.ll")
	assert payload["phase"] == "parser"
	assert payload["file"] == "t.ll"
	assert payload["line"] is None
