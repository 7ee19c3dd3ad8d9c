# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
llvmlite interop.

- `from_llvmlite`: analyze a module built in memory with `llvmlite.ir`.
- `verify_assembly`: let LLVM itself reject malformed input before analysis.
- `declarations_to_llvmlite`: render a unit's external declarations (the
  runtime assertion hook in particular) through llvmlite.
"""

from __future__ import annotations

from llvmlite import binding as llvm  # type: ignore
from llvmlite import ir  # type: ignore

from .nodes import Module
from .parser import IRParseError, parse_module
from .types import (
	ArrayType,
	FloatType,
	FunctionType,
	IntType,
	IrType,
	LabelType,
	NamedType,
	PointerType,
	StructType,
	VectorType,
	VoidType,
)

_FLOAT_TYPES = {
	"half": ir.HalfType,
	"float": ir.FloatType,
	"double": ir.DoubleType,
}


def from_llvmlite(llvm_module: ir.Module) -> Module:
	"""Parse an llvmlite module through its textual form."""
	return parse_module(str(llvm_module), name=llvm_module.name)


def verify_assembly(text: str) -> None:
	"""Parse and verify `text` with LLVM; raise IRParseError with LLVM's message on failure."""
	try:
		parsed = llvm.parse_assembly(text)
		parsed.verify()
	except RuntimeError as exc:
		raise IRParseError(f"LLVM rejected the module: {str(exc).strip()}") from exc


def to_llvmlite_type(ty: IrType, context: ir.Context | None = None) -> ir.Type:
	"""
	Convert an IR type to its llvmlite counterpart.

	Opaque pointers become `i8*` so the result prints on typed-pointer llvmlite
	releases as well.
	"""
	if isinstance(ty, IntType):
		return ir.IntType(ty.width)
	if isinstance(ty, FloatType):
		factory = _FLOAT_TYPES.get(ty.name)
		if factory is None:
			raise ValueError(f"llvmlite has no type for '{ty.name}'")
		return factory()
	if isinstance(ty, VoidType):
		return ir.VoidType()
	if isinstance(ty, LabelType):
		return ir.LabelType()
	if isinstance(ty, PointerType):
		pointee = ir.IntType(8) if ty.pointee is None else to_llvmlite_type(ty.pointee, context)
		return pointee.as_pointer(ty.addrspace)
	if isinstance(ty, ArrayType):
		return ir.ArrayType(to_llvmlite_type(ty.element, context), ty.count)
	if isinstance(ty, VectorType):
		return ir.VectorType(to_llvmlite_type(ty.element, context), ty.count)
	if isinstance(ty, StructType):
		return ir.LiteralStructType([to_llvmlite_type(e, context) for e in ty.elements], packed=ty.packed)
	if isinstance(ty, NamedType):
		if context is None:
			raise ValueError(f"named type %{ty.name} needs a module context")
		return context.get_identified_type(ty.name)
	if isinstance(ty, FunctionType):
		return ir.FunctionType(
			to_llvmlite_type(ty.return_type, context),
			[to_llvmlite_type(p, context) for p in ty.params],
			var_arg=ty.var_arg,
		)
	raise TypeError(f"unhandled IR type {ty!r}")


def declarations_to_llvmlite(module: Module) -> ir.Module:
	"""
	Build an llvmlite module holding the unit's typed external declarations.

	Declarations read from the input text carry no modelled signature and are
	left out.
	"""
	out = ir.Module(name=module.name)
	for decl in module.declarations.values():
		if decl.type is None:
			continue
		fnty = to_llvmlite_type(decl.type, out.context)
		fn = out.globals.get(decl.name)
		if fn is None:
			fn = ir.Function(out, fnty, name=decl.name)
		for attr in decl.attributes:
			fn.attributes.add(attr)
		fn.calling_convention = decl.calling_conv
	return out


__all__ = ["from_llvmlite", "verify_assembly", "to_llvmlite_type", "declarations_to_llvmlite"]
