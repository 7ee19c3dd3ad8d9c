# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
IR node tree produced by the textual reader.

Pipeline placement:
  .ll text / llvmlite module → Module (this file) → passes → diagnostics

Only the pointer-indexing instruction (`getelementptr`) is modelled in detail;
every other instruction keeps its opcode and source text. The instruction and
operand variant sets are closed (see `Instr` / `Operand`), so passes can match
over them exhaustively. Nothing here carries analysis semantics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple, Union

from .types import FunctionType, IrType, pointee_of


@dataclass(frozen=True)
class Location:
	"""Debug location resolved from a `!dbg` attachment."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None


# Operands

@dataclass(frozen=True)
class ConstInt:
	"""Constant integer operand (`i64 5`, `i1 true`)."""
	type: IrType
	value: int


@dataclass(frozen=True)
class ConstOther:
	"""Any other constant: null, undef, poison, zeroinitializer, vector literals."""
	type: IrType
	text: str


@dataclass(frozen=True)
class LocalRef:
	"""`%name`: an SSA value, argument or stack slot."""
	type: IrType
	name: str


@dataclass(frozen=True)
class GlobalRef:
	"""`@name`: a global variable or function."""
	type: IrType
	name: str


Operand = Union[ConstInt, ConstOther, LocalRef, GlobalRef]


# Instructions

@dataclass(frozen=True)
class GetElementPtr:
	"""
	dest = getelementptr [flags] source_type, base, indices...

	`source_type` is the element type written on the instruction; `base` is the
	pointer operand with its own static type.
	"""
	dest: Optional[str]
	source_type: IrType
	base: Operand
	indices: Tuple[Operand, ...]
	flags: Tuple[str, ...] = ()
	loc: Optional[Location] = None
	text: str = ""

	@property
	def opcode(self) -> str:
		return "getelementptr"

	@property
	def pointer_type(self) -> IrType:
		return self.base.type

	@property
	def pointee_type(self) -> IrType:
		"""
		Type the base pointer points to.

		Typed pointers carry it; opaque pointers defer to the source element
		type written on the instruction.
		"""
		pointee = pointee_of(self.base.type)
		return pointee if pointee is not None else self.source_type

	@property
	def inbounds(self) -> bool:
		return "inbounds" in self.flags

	def has_all_constant_indices(self) -> bool:
		return all(isinstance(idx, ConstInt) for idx in self.indices)


@dataclass(frozen=True)
class OtherInstr:
	"""Any non-terminator instruction other than getelementptr."""
	opcode: str
	dest: Optional[str] = None
	loc: Optional[Location] = None
	text: str = ""


Instr = Union[GetElementPtr, OtherInstr]


TERMINATOR_OPCODES = frozenset(
	{
		"ret",
		"br",
		"switch",
		"indirectbr",
		"invoke",
		"callbr",
		"resume",
		"catchswitch",
		"catchret",
		"cleanupret",
		"unreachable",
	}
)


@dataclass(frozen=True)
class Terminator:
	"""Block terminator; only the opcode and source text are kept."""
	opcode: str
	loc: Optional[Location] = None
	text: str = ""


# Containers

@dataclass
class BasicBlock:
	name: str
	instructions: List[Instr] = field(default_factory=list)
	terminator: Optional[Terminator] = None


@dataclass
class Function:
	name: str
	header: str = ""  # the `define ...` line as written, without the brace
	blocks: Dict[str, BasicBlock] = field(default_factory=dict)
	entry: Optional[str] = None

	def iter_instructions(self) -> Iterator[Tuple[str, Instr]]:
		"""Yield (block name, instruction) in block order, then program order."""
		for block_name, block in self.blocks.items():
			for instr in block.instructions:
				yield block_name, instr


@dataclass
class FuncDecl:
	"""External function declaration (`declare ...`)."""
	name: str
	type: Optional[FunctionType] = None
	attributes: Tuple[str, ...] = ()
	calling_conv: str = "ccc"
	text: str = ""


@dataclass
class Module:
	"""One compilation unit."""
	name: str = "<module>"
	source_filename: Optional[str] = None
	functions: Dict[str, Function] = field(default_factory=dict)
	declarations: Dict[str, FuncDecl] = field(default_factory=dict)
	# `!N` metadata id -> resolved DILocation
	debug_locations: Dict[str, Location] = field(default_factory=dict)


__all__ = [
	"Location",
	"ConstInt",
	"ConstOther",
	"LocalRef",
	"GlobalRef",
	"Operand",
	"GetElementPtr",
	"OtherInstr",
	"Instr",
	"Terminator",
	"TERMINATOR_OPCODES",
	"BasicBlock",
	"Function",
	"FuncDecl",
	"Module",
]
