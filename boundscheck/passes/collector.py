# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Instruction collector: gather every getelementptr of a function up front.

The worklist is built completely before any analysis runs and is returned as
a tuple, so rewriting or deleting instructions while it is consumed cannot
disturb the scan.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from boundscheck.ir.nodes import Function, GetElementPtr, OtherInstr


@dataclass(frozen=True)
class WorkItem:
	"""One pointer-indexing instruction and where it sits."""

	block: str
	index: int  # position in block.instructions
	instr: GetElementPtr


def collect_geps(fn: Function) -> Tuple[WorkItem, ...]:
	"""All getelementptr instructions of `fn`, in block order then program order."""
	items: List[WorkItem] = []
	for block_name, block in fn.blocks.items():
		for idx, instr in enumerate(block.instructions):
			if isinstance(instr, GetElementPtr):
				items.append(WorkItem(block=block_name, index=idx, instr=instr))
			elif not isinstance(instr, OtherInstr):
				raise TypeError(f"unhandled instruction {instr!r}")
	return tuple(items)


__all__ = ["WorkItem", "collect_geps"]
