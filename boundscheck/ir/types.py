# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Static types of the LLVM IR subset the analyses understand.

The variant set is closed: every type the parser produces is one of the
classes below. Helpers that inspect types dispatch over all of them and raise
`TypeError` for anything else, so a new variant cannot slip through silently.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class IntType:
	width: int

	def __str__(self) -> str:
		return f"i{self.width}"


@dataclass(frozen=True)
class FloatType:
	name: str  # half, bfloat, float, double, fp128

	def __str__(self) -> str:
		return self.name


@dataclass(frozen=True)
class VoidType:
	def __str__(self) -> str:
		return "void"


@dataclass(frozen=True)
class LabelType:
	def __str__(self) -> str:
		return "label"


@dataclass(frozen=True)
class PointerType:
	"""
	Pointer type. `pointee=None` is an opaque `ptr`; the element type is then
	only known from the instruction using the pointer.
	"""

	pointee: Optional["IrType"] = None
	addrspace: int = 0

	@property
	def is_opaque(self) -> bool:
		return self.pointee is None

	def __str__(self) -> str:
		if self.pointee is None:
			return "ptr" if not self.addrspace else f"ptr addrspace({self.addrspace})"
		if self.addrspace:
			return f"{self.pointee} addrspace({self.addrspace})*"
		return f"{self.pointee}*"


@dataclass(frozen=True)
class ArrayType:
	count: int
	element: "IrType"

	def __str__(self) -> str:
		return f"[{self.count} x {self.element}]"


@dataclass(frozen=True)
class VectorType:
	count: int
	element: "IrType"

	def __str__(self) -> str:
		return f"<{self.count} x {self.element}>"


@dataclass(frozen=True)
class StructType:
	elements: Tuple["IrType", ...] = ()
	packed: bool = False

	def __str__(self) -> str:
		inner = ", ".join(str(e) for e in self.elements)
		body = f"{{ {inner} }}" if inner else "{}"
		return f"<{body}>" if self.packed else body


@dataclass(frozen=True)
class NamedType:
	"""Reference to an identified struct type, e.g. `%struct.point`."""

	name: str

	def __str__(self) -> str:
		return f"%{self.name}"


@dataclass(frozen=True)
class FunctionType:
	return_type: "IrType"
	params: Tuple["IrType", ...] = ()
	var_arg: bool = False

	def __str__(self) -> str:
		params = [str(p) for p in self.params]
		if self.var_arg:
			params.append("...")
		return f"{self.return_type} ({', '.join(params)})"


IrType = Union[
	IntType,
	FloatType,
	VoidType,
	LabelType,
	PointerType,
	ArrayType,
	VectorType,
	StructType,
	NamedType,
	FunctionType,
]

_ALL_TYPES = (
	IntType,
	FloatType,
	VoidType,
	LabelType,
	PointerType,
	ArrayType,
	VectorType,
	StructType,
	NamedType,
	FunctionType,
)

I1 = IntType(1)
I8 = IntType(8)
I32 = IntType(32)
I64 = IntType(64)
VOID = VoidType()
I8_PTR = PointerType(I8)


def fixed_array_length(ty: IrType) -> Optional[int]:
	"""Declared element count when `ty` is a fixed-size array, else None."""
	if isinstance(ty, ArrayType):
		return ty.count
	if isinstance(ty, _ALL_TYPES):
		# Scalars, vectors, structs, pointers and named types carry no array
		# length of their own.
		return None
	raise TypeError(f"unhandled IR type {ty!r}")


def pointee_of(ty: IrType) -> Optional[IrType]:
	"""Pointed-to type of a typed pointer; None for opaque pointers and non-pointers."""
	if isinstance(ty, PointerType):
		return ty.pointee
	if isinstance(ty, _ALL_TYPES):
		return None
	raise TypeError(f"unhandled IR type {ty!r}")


__all__ = [
	"IrType",
	"IntType",
	"FloatType",
	"VoidType",
	"LabelType",
	"PointerType",
	"ArrayType",
	"VectorType",
	"StructType",
	"NamedType",
	"FunctionType",
	"I1",
	"I8",
	"I32",
	"I64",
	"VOID",
	"I8_PTR",
	"fixed_array_length",
	"pointee_of",
]
