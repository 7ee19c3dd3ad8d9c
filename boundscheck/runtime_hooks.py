# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
External runtime hooks a compilation unit may need.

Only the assertion hook exists today:

	declare void @__assert(i8*, i8*, i32, ...) noreturn

It mirrors the Sys V `__assert(assertion, file, line)` entry point: print the
failed assertion with its source location, then abort. The bounds check makes
sure the declaration is present but never emits a call to it; inserting
runtime checks is not implemented.
"""

from __future__ import annotations

import logging

from boundscheck.ir.nodes import FuncDecl, Module
from boundscheck.ir.types import I8_PTR, I32, VOID, FunctionType

log = logging.getLogger(__name__)

ASSERT_FN_NAME = "__assert"
ASSERT_FN_TYPE = FunctionType(VOID, (I8_PTR, I8_PTR, I32), var_arg=True)


def get_assert_function(unit: Module) -> FuncDecl:
	"""
	Return the unit's `__assert` declaration, creating it on first use.

	A declaration already present in the unit (including one read from the
	input text) is reused, so repeated calls never add a second one.
	"""
	decl = unit.declarations.get(ASSERT_FN_NAME)
	if decl is not None:
		return decl
	decl = FuncDecl(
		name=ASSERT_FN_NAME,
		type=ASSERT_FN_TYPE,
		attributes=("noreturn",),
		calling_conv="ccc",
	)
	unit.declarations[ASSERT_FN_NAME] = decl
	log.debug("declared @%s in module '%s'", ASSERT_FN_NAME, unit.name)
	return decl


__all__ = ["ASSERT_FN_NAME", "ASSERT_FN_TYPE", "get_assert_function"]
