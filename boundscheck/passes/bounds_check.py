# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Static bounds check for getelementptr instructions.

For every pointer-indexing instruction two facts are recovered independently:

  - the declared element count of the array the base pointer points to
    (only when the pointee is a fixed-size array type), and
  - the requested index (only when every index operand is a constant
    integer; the last index operand is the one compared).

When both are known and the index is not below the length, the instruction is
a proven violation. When either is unknown the instruction is left alone: the
check never reports what it cannot prove.

Nested arrays are not decomposed per dimension. `[3 x [4 x i32]]` indexed as
`0, 1, 5` compares 5 against 3. Front ends usually emit one getelementptr per
dimension, in which case every level is checked against its own length.

Entry point:
  BoundsCheck().run_on_function(fn, unit) -> FunctionResult
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from boundscheck.core.span import Span
from boundscheck.ir.nodes import ConstInt, FuncDecl, Function, GetElementPtr, Module
from boundscheck.ir.types import PointerType, fixed_array_length
from boundscheck.passes.collector import collect_geps
from boundscheck.runtime_hooks import get_assert_function

log = logging.getLogger(__name__)


class Verdict(Enum):
	IN_BOUNDS = "in-bounds"
	VIOLATION = "violation"
	UNANALYZABLE = "unanalyzable"


@dataclass(frozen=True)
class BoundsViolation:
	"""A constant index proven to be outside a fixed-size array."""

	function: str
	block: str
	index: int
	length: int
	span: Span = field(default_factory=Span)
	instr_text: str = ""


@dataclass
class FunctionResult:
	"""Outcome of checking one function. The function is never modified."""

	function: str
	modified: bool = False
	violations: List[BoundsViolation] = field(default_factory=list)
	in_bounds: int = 0
	unanalyzable: int = 0

	@property
	def ok(self) -> bool:
		return not self.violations


def recover_array_length(gep: GetElementPtr) -> Optional[int]:
	"""Element count of the pointed-to array, or None when it is not a fixed-size array."""
	if not isinstance(gep.pointer_type, PointerType):
		# e.g. a vector of pointers
		return None
	return fixed_array_length(gep.pointee_type)


def recover_index(gep: GetElementPtr) -> Optional[int]:
	"""
	Last index operand's value when every index is a constant integer, else None.

	A negative constant is not a usable array index and counts as unknown.
	"""
	if not gep.indices or not gep.has_all_constant_indices():
		return None
	last = gep.indices[-1]
	assert isinstance(last, ConstInt)
	if last.value < 0:
		return None
	return last.value


def decide(length: Optional[int], index: Optional[int]) -> Verdict:
	if length is None or index is None:
		return Verdict.UNANALYZABLE
	if index >= length:
		return Verdict.VIOLATION
	return Verdict.IN_BOUNDS


class BoundsCheck:
	"""
	Function-level analysis pass.

	With `stop_at_first` (the default) the worklist is abandoned at the first
	violation; otherwise every instruction is checked and all violations are
	returned.
	"""

	name = "bounds-check"

	def __init__(self, stop_at_first: bool = True) -> None:
		self.stop_at_first = stop_at_first
		self._assert_decl: Optional[FuncDecl] = None
		self._assert_unit: Optional[Module] = None

	def run_on_function(self, fn: Function, unit: Optional[Module] = None) -> FunctionResult:
		log.debug("BoundsCheck: processing function '%s'", fn.name)
		if unit is not None and (self._assert_decl is None or self._assert_unit is not unit):
			self._assert_decl = get_assert_function(unit)
			self._assert_unit = unit

		result = FunctionResult(function=fn.name)
		for item in collect_geps(fn):
			gep = item.instr
			log.debug("GEP instruction: %s", gep.text)
			length = recover_array_length(gep)
			if length is not None:
				log.debug("GEP array has length: %d", length)
			index = recover_index(gep)
			if index is not None:
				log.debug("GEP is composed of constant indices only, index: %d", index)

			verdict = decide(length, index)
			if verdict is Verdict.VIOLATION:
				assert index is not None and length is not None
				log.debug("GEP index %d is out of bounds for length %d", index, length)
				result.violations.append(
					BoundsViolation(
						function=fn.name,
						block=item.block,
						index=index,
						length=length,
						span=Span.from_loc(gep.loc),
						instr_text=gep.text,
					)
				)
				if self.stop_at_first:
					break
			elif verdict is Verdict.IN_BOUNDS:
				result.in_bounds += 1
				log.debug("GEP instruction uses the correct bounds")
			else:
				result.unanalyzable += 1
				log.debug("BoundsCheck could not analyse this instruction")
		return result


__all__ = [
	"Verdict",
	"BoundsViolation",
	"FunctionResult",
	"recover_array_length",
	"recover_index",
	"decide",
	"BoundsCheck",
]
