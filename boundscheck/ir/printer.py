# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Render parsed IR back to LLVM-like text (`--dump-ir`, before/after comparisons)."""

from __future__ import annotations

from typing import List

from .nodes import BasicBlock, FuncDecl, Function, GetElementPtr, Instr, Module, OtherInstr, Terminator


def _quote(name: str) -> str:
	if name and all(ch.isalnum() or ch in "-$._" for ch in name):
		return name
	escaped = name.replace("\\", "\\5C").replace('"', "\\22")
	return f'"{escaped}"'


def format_instr(instr: Instr) -> str:
	if isinstance(instr, (GetElementPtr, OtherInstr)):
		return f"  {instr.text}"
	raise TypeError(f"unhandled instruction {instr!r}")


def format_term(term: Terminator | None) -> str:
	if term is None:
		return "  <missing terminator>"
	return f"  {term.text}"


def format_block(block: BasicBlock) -> List[str]:
	lines = [f"{_quote(block.name)}:"]
	lines.extend(format_instr(instr) for instr in block.instructions)
	lines.append(format_term(block.terminator))
	return lines


def format_function(fn: Function) -> str:
	lines = [f"{fn.header} {{"]
	for idx, block in enumerate(fn.blocks.values()):
		if idx:
			lines.append("")
		lines.extend(format_block(block))
	lines.append("}")
	return "\n".join(lines)


def format_decl(decl: FuncDecl) -> str:
	if decl.text:
		return decl.text
	attrs = f" {' '.join(decl.attributes)}" if decl.attributes else ""
	if decl.type is None:
		return f"declare void @{_quote(decl.name)}(...){attrs}"
	params = [str(p) for p in decl.type.params]
	if decl.type.var_arg:
		params.append("...")
	cc = "" if decl.calling_conv == "ccc" else f"{decl.calling_conv} "
	return f"declare {cc}{decl.type.return_type} @{_quote(decl.name)}({', '.join(params)}){attrs}"


def format_module(module: Module) -> str:
	parts: List[str] = [f"; ModuleID = '{module.name}'"]
	if module.source_filename is not None:
		parts.append(f'source_filename = "{module.source_filename}"')
	for fn in module.functions.values():
		parts.append("")
		parts.append(format_function(fn))
	if module.declarations:
		parts.append("")
		parts.extend(format_decl(decl) for decl in module.declarations.values())
	return "\n".join(parts) + "\n"


__all__ = ["format_instr", "format_term", "format_block", "format_function", "format_decl", "format_module"]
