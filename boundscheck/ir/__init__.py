# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
IR package: type model, node tree, textual reader and printer.

Public API:
  - parse_module / parse_module_file / parse_type: text → nodes
  - Module, Function, BasicBlock, GetElementPtr, ...: node tree
  - format_module / format_function: nodes → text
  - IRParseError: malformed input

`llvm_bridge` (llvmlite interop) is imported explicitly by its users.
"""

from .nodes import (
	BasicBlock,
	ConstInt,
	ConstOther,
	FuncDecl,
	Function,
	GetElementPtr,
	GlobalRef,
	Instr,
	LocalRef,
	Location,
	Module,
	Operand,
	OtherInstr,
	Terminator,
)
from .parser import IRParseError, parse_gep, parse_module, parse_module_file, parse_type
from .printer import format_function, format_module
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
	fixed_array_length,
)

__all__ = [
	"BasicBlock",
	"ConstInt",
	"ConstOther",
	"FuncDecl",
	"Function",
	"GetElementPtr",
	"GlobalRef",
	"Instr",
	"LocalRef",
	"Location",
	"Module",
	"Operand",
	"OtherInstr",
	"Terminator",
	"IRParseError",
	"parse_gep",
	"parse_module",
	"parse_module_file",
	"parse_type",
	"format_function",
	"format_module",
	"ArrayType",
	"FloatType",
	"FunctionType",
	"IntType",
	"IrType",
	"LabelType",
	"NamedType",
	"PointerType",
	"StructType",
	"VectorType",
	"VoidType",
	"fixed_array_length",
]
