# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Reader for textual LLVM IR (`.ll`, clang `-S -emit-llvm`, llvmlite `str(module)`).

Module structure is line oriented in LLVM assembly, so it is split here by
line: function headers, block labels, instructions, declarations and the
debug-info metadata needed to locate instructions. Instruction operands are
only needed for `getelementptr`, whose lines go through the lark grammar in
`grammar.lark`. Everything else keeps its opcode and source text.

Top-level entities the analyses do not read (globals, attribute groups, type
definitions, other metadata) are skipped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from lark import Lark, Token, Tree
from lark.exceptions import LarkError

from .nodes import (
	BasicBlock,
	ConstInt,
	ConstOther,
	FuncDecl,
	Function,
	GetElementPtr,
	GlobalRef,
	LocalRef,
	Location,
	Module,
	Operand,
	OtherInstr,
	Terminator,
	TERMINATOR_OPCODES,
)
from .types import (
	VOID,
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
)

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	start=["gep_instr", "type_expr"],
	maybe_placeholders=False,
)

_NAME = r'(?:"(?:[^"\\]|\\.)*"|[-a-zA-Z$._0-9]+)'
_DEFINE_RE = re.compile(rf"^define\b[^@]*@({_NAME})\s*\(")
_DECLARE_RE = re.compile(rf"^declare\b[^@]*@({_NAME})\s*\(")
_LABEL_RE = re.compile(rf"^({_NAME}):$")
_ASSIGN_RE = re.compile(rf"^%({_NAME})\s*=\s*")
_OPCODE_RE = re.compile(r"^([a-z][a-z0-9_]*)\b")
_SOURCE_FILENAME_RE = re.compile(r'^source_filename\s*=\s*"((?:[^"\\]|\\.)*)"')
_MODULE_ID_RE = re.compile(r"""^;\s*ModuleID\s*=\s*['"](.*)['"]\s*$""")
_METADATA_NODE_RE = re.compile(r"^!(\d+)\s*=\s*(?:distinct\s+)?!(DI[A-Za-z]+)\((.*)\)\s*$")
_METADATA_FIELD_RE = re.compile(r'(\w+):\s*("(?:[^"\\]|\\.)*"|!\d+|[-\w.]+)')
_ATTACHMENT_RE = re.compile(r",\s*!([A-Za-z_][-\w.]*)\s+!(\d+)\s*$")
_HEX_ESCAPE_RE = re.compile(r"\\([0-9A-Fa-f]{2})")

_DEBUG_RECORD_PREFIX = "#dbg_"

# Call-site markers that precede the `call` opcode.
_CALL_PREFIXES = frozenset({"tail", "musttail", "notail"})


class IRParseError(Exception):
	"""Malformed or unsupported IR text."""

	def __init__(self, message: str, line: Optional[int] = None) -> None:
		super().__init__(message)
		self.message = message
		self.line = line

	def __str__(self) -> str:
		if self.line is None:
			return self.message
		return f"line {self.line}: {self.message}"


def parse_module(text: str, name: str = "<module>") -> Module:
	"""Parse a whole LLVM assembly module."""
	lines = text.splitlines()
	module = Module(name=name)
	module.source_filename = _find_source_filename(lines)
	module.debug_locations = _collect_debug_locations(lines, module.source_filename)
	_ModuleReader(module).read(lines)
	return module


def parse_module_file(path: Path) -> Module:
	path = Path(path)
	return parse_module(path.read_text(), name=path.name)


def parse_type(text: str) -> IrType:
	"""Parse a standalone LLVM type such as `[4 x i32]*`."""
	try:
		tree = _PARSER.parse(text, start="type_expr")
	except LarkError as exc:
		raise IRParseError(f"invalid type {text!r}: {exc}") from exc
	return _build_type(tree)


def parse_gep(text: str, loc: Optional[Location] = None, line: Optional[int] = None) -> GetElementPtr:
	"""Parse one `getelementptr` instruction (without metadata attachments)."""
	try:
		tree = _PARSER.parse(text, start="gep_instr")
	except LarkError as exc:
		raise IRParseError(f"unsupported getelementptr form: {text}", line) from exc
	return _build_gep(tree, loc, text)


# ---------------------------------------------------------------------------
# Line-level reader
# ---------------------------------------------------------------------------

@dataclass
class _OpenFunction:
	fn: Function
	awaiting_brace: bool
	current: Optional[BasicBlock] = None
	start_line: int = 0
	seen_labels: set = field(default_factory=set)


class _ModuleReader:
	def __init__(self, module: Module) -> None:
		self.module = module
		self.open: Optional[_OpenFunction] = None

	def read(self, lines: List[str]) -> None:
		pending = ""
		pending_line = 0
		for lineno, raw in enumerate(lines, start=1):
			if self.open is None:
				mid = _MODULE_ID_RE.match(raw.strip())
				if mid and self.module.name == "<module>":
					self.module.name = mid.group(1)
			line = _strip_comment(raw).strip()
			if not line:
				continue
			# Multi-line instructions (`switch`, `indirectbr`) keep brackets open.
			if pending:
				pending = f"{pending} {line}"
			else:
				pending, pending_line = line, lineno
			if self.open is not None and _bracket_depth(pending) > 0:
				continue
			self._read_line(pending, pending_line)
			pending = ""
		if pending:
			self._read_line(pending, pending_line)
		if self.open is not None:
			raise IRParseError(f"function @{self.open.fn.name} is not terminated by '}}'", self.open.start_line)

	def _read_line(self, line: str, lineno: int) -> None:
		if self.open is None:
			self._read_top_level(line, lineno)
		else:
			self._read_body_line(line, lineno)

	def _read_top_level(self, line: str, lineno: int) -> None:
		if line.startswith("define"):
			m = _DEFINE_RE.match(line)
			if not m:
				raise IRParseError("malformed function definition", lineno)
			name = _unquote(m.group(1))
			if name in self.module.functions:
				raise IRParseError(f"function @{name} is defined twice", lineno)
			header = line[:-1].rstrip() if line.endswith("{") else line
			fn = Function(name=name, header=header)
			self.module.functions[name] = fn
			self.open = _OpenFunction(fn=fn, awaiting_brace=not line.endswith("{"), start_line=lineno)
			return
		if line.startswith("declare"):
			m = _DECLARE_RE.match(line)
			if not m:
				raise IRParseError("malformed function declaration", lineno)
			name = _unquote(m.group(1))
			self.module.declarations[name] = FuncDecl(name=name, text=line)

	def _read_body_line(self, line: str, lineno: int) -> None:
		state = self.open
		assert state is not None
		if state.awaiting_brace:
			if line != "{":
				raise IRParseError(f"expected '{{' after the header of @{state.fn.name}", lineno)
			state.awaiting_brace = False
			return
		if line == "}":
			self._close_function(lineno)
			return
		if line.startswith(_DEBUG_RECORD_PREFIX):
			# `#dbg_declare(...)`, `#dbg_value(...)`: debug records, not instructions.
			return
		label = _LABEL_RE.match(line)
		if label:
			self._open_block(_unquote(label.group(1)), lineno)
			return
		self._read_instruction(line, lineno)

	def _open_block(self, name: str, lineno: int) -> None:
		state = self.open
		assert state is not None
		if name in state.seen_labels:
			raise IRParseError(f"block label '{name}' appears twice in @{state.fn.name}", lineno)
		if state.current is not None and state.current.terminator is None:
			raise IRParseError(f"block '{state.current.name}' falls through into '{name}' without a terminator", lineno)
		state.seen_labels.add(name)
		block = BasicBlock(name=name)
		state.fn.blocks[name] = block
		if state.fn.entry is None:
			state.fn.entry = name
		state.current = block

	def _read_instruction(self, line: str, lineno: int) -> None:
		state = self.open
		assert state is not None
		if state.current is None:
			# Unlabeled entry block.
			self._open_block("entry", lineno)
		block = state.current
		assert block is not None
		if block.terminator is not None:
			raise IRParseError(f"instruction after the terminator of block '{block.name}' needs a label", lineno)
		body, attachments = _split_attachments(line)
		loc = None
		dbg = attachments.get("dbg")
		if dbg is not None:
			loc = self.module.debug_locations.get(dbg)
		dest, opcode = _dest_and_opcode(body, lineno)
		if opcode == "getelementptr":
			block.instructions.append(parse_gep(body, loc=loc, line=lineno))
		elif opcode in TERMINATOR_OPCODES:
			block.terminator = Terminator(opcode=opcode, loc=loc, text=body)
		else:
			block.instructions.append(OtherInstr(opcode=opcode, dest=dest, loc=loc, text=body))

	def _close_function(self, lineno: int) -> None:
		state = self.open
		assert state is not None
		if not state.fn.blocks:
			raise IRParseError(f"function @{state.fn.name} has no basic blocks", lineno)
		last = state.current
		if last is not None and last.terminator is None:
			raise IRParseError(f"block '{last.name}' of @{state.fn.name} has no terminator", lineno)
		self.open = None


# ---------------------------------------------------------------------------
# Tree → node builders
# ---------------------------------------------------------------------------

def _name(tree: Tree) -> str:
	return str(tree.data)


def _build_gep(tree: Tree, loc: Optional[Location], text: str) -> GetElementPtr:
	dest: Optional[str] = None
	flags: List[str] = []
	source_type: Optional[IrType] = None
	operands: List[Operand] = []
	for child in tree.children:
		if isinstance(child, Token):
			if child.type == "LOCAL_ID":
				dest = _unquote(child[1:])
			else:
				flags.append(str(child))
		elif _name(child) == "inrange":
			lo, hi = (int(tok) for tok in child.children)
			flags.append(f"inrange({lo}, {hi})")
		elif _name(child) == "operand":
			operands.append(_build_operand(child))
		else:
			source_type = _build_type(child)
	assert source_type is not None and operands, "grammar guarantees a type and a base operand"
	return GetElementPtr(
		dest=dest,
		source_type=source_type,
		base=operands[0],
		indices=tuple(operands[1:]),
		flags=tuple(flags),
		loc=loc,
		text=text,
	)


def _build_operand(tree: Tree) -> Operand:
	type_tree, value = tree.children
	ty = _build_type(type_tree)
	kind = _name(value)
	if kind == "const_vector":
		inner = [_build_operand(child) for child in value.children]
		return ConstOther(type=ty, text="<" + ", ".join(_operand_text(op) for op in inner) + ">")
	tok = value.children[0]
	if kind == "const_int":
		return ConstInt(type=ty, value=int(tok))
	if kind == "const_bool":
		return ConstInt(type=ty, value=1 if tok == "true" else 0)
	if kind == "local_ref":
		return LocalRef(type=ty, name=_unquote(tok[1:]))
	if kind == "global_ref":
		return GlobalRef(type=ty, name=_unquote(tok[1:]))
	if kind == "const_word":
		return ConstOther(type=ty, text=str(tok))
	raise IRParseError(f"unexpected operand node {kind!r}")


def _operand_text(op: Operand) -> str:
	if isinstance(op, ConstInt):
		return f"{op.type} {op.value}"
	if isinstance(op, ConstOther):
		return f"{op.type} {op.text}"
	if isinstance(op, LocalRef):
		return f"{op.type} %{op.name}"
	return f"{op.type} @{op.name}"


def _build_type(tree: Tree) -> IrType:
	kind = _name(tree)
	children = tree.children
	if kind == "type_expr":
		return _build_type(children[0])
	if kind == "int_type":
		return IntType(int(children[0][1:]))
	if kind == "float_type":
		return FloatType(str(children[0]))
	if kind == "void_type":
		return VOID
	if kind == "label_type":
		return LabelType()
	if kind == "opaque_pointer_type":
		return PointerType(None, int(children[0]) if children else 0)
	if kind == "pointer_type":
		return PointerType(_build_type(children[0]))
	if kind == "function_type":
		ret = _build_type(children[0])
		params: List[IrType] = []
		var_arg = False
		if len(children) > 1:
			for item in children[1].children:
				if isinstance(item, Token):
					var_arg = True
				else:
					params.append(_build_type(item))
		return FunctionType(ret, tuple(params), var_arg)
	if kind == "array_type":
		return ArrayType(int(children[0]), _build_type(children[1]))
	if kind == "vector_type":
		return VectorType(int(children[0]), _build_type(children[1]))
	if kind == "struct_type":
		return StructType(tuple(_build_type(c) for c in children))
	if kind == "packed_struct_type":
		return StructType(tuple(_build_type(c) for c in children), packed=True)
	if kind == "named_type":
		return NamedType(_unquote(children[0][1:]))
	raise IRParseError(f"unexpected type node {kind!r}")


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------

def _strip_comment(line: str) -> str:
	"""Drop a `;` comment, ignoring semicolons inside quoted strings."""
	in_quote = False
	escaped = False
	for idx, ch in enumerate(line):
		if escaped:
			escaped = False
		elif ch == "\\" and in_quote:
			escaped = True
		elif ch == '"':
			in_quote = not in_quote
		elif ch == ";" and not in_quote:
			return line[:idx]
	return line


def _bracket_depth(text: str) -> int:
	depth = 0
	in_quote = False
	for ch in text:
		if ch == '"':
			in_quote = not in_quote
		elif not in_quote and ch == "[":
			depth += 1
		elif not in_quote and ch == "]":
			depth -= 1
	return depth


def _split_attachments(line: str) -> Tuple[str, Dict[str, str]]:
	"""Split `..., !dbg !12, !tbaa !3` into the instruction body and attachments."""
	attachments: Dict[str, str] = {}
	body = line
	while True:
		m = _ATTACHMENT_RE.search(body)
		if not m:
			break
		attachments.setdefault(m.group(1), m.group(2))
		body = body[: m.start()].rstrip()
	return body, attachments


def _dest_and_opcode(body: str, lineno: int) -> Tuple[Optional[str], str]:
	dest = None
	rest = body
	m = _ASSIGN_RE.match(body)
	if m:
		dest = _unquote(m.group(1))
		rest = body[m.end():]
	op = _OPCODE_RE.match(rest)
	if not op:
		raise IRParseError(f"cannot find an opcode in {body!r}", lineno)
	opcode = op.group(1)
	if opcode in _CALL_PREFIXES:
		following = _OPCODE_RE.match(rest[op.end():].lstrip())
		if following:
			opcode = following.group(1)
	return dest, opcode


def _unquote(name: str) -> str:
	if len(name) >= 2 and name.startswith('"') and name.endswith('"'):
		return _unescape(name[1:-1])
	return name


def _unescape(text: str) -> str:
	return _HEX_ESCAPE_RE.sub(lambda m: chr(int(m.group(1), 16)), text)


# ---------------------------------------------------------------------------
# Debug info
# ---------------------------------------------------------------------------

@dataclass
class _MetadataNode:
	kind: str
	fields: Dict[str, str]


def _find_source_filename(lines: List[str]) -> Optional[str]:
	for raw in lines:
		m = _SOURCE_FILENAME_RE.match(raw.strip())
		if m:
			return _unescape(m.group(1))
	return None


def _collect_debug_locations(lines: List[str], default_file: Optional[str] = None) -> Dict[str, Location]:
	"""
	Resolve every `!N = !DILocation(...)` to a Location.

	The file comes from the DIFile reached through the scope chain, falling back
	to the module's `source_filename`.
	"""
	nodes: Dict[str, _MetadataNode] = {}
	for raw in lines:
		m = _METADATA_NODE_RE.match(raw.strip())
		if not m:
			continue
		fields = {key: value for key, value in _METADATA_FIELD_RE.findall(m.group(3))}
		nodes[m.group(1)] = _MetadataNode(kind=m.group(2), fields=fields)

	locations: Dict[str, Location] = {}
	for md_id, node in nodes.items():
		if node.kind != "DILocation":
			continue
		line = node.fields.get("line")
		column = node.fields.get("column")
		locations[md_id] = Location(
			file=_scope_file(nodes, node.fields.get("scope")) or default_file,
			line=int(line) if line is not None and line.isdigit() else None,
			column=int(column) if column is not None and column.isdigit() else None,
		)
	return locations


def _scope_file(nodes: Dict[str, _MetadataNode], ref: Optional[str]) -> Optional[str]:
	seen: set = set()
	while ref is not None and ref.startswith("!") and ref not in seen:
		seen.add(ref)
		node = nodes.get(ref[1:])
		if node is None:
			return None
		if node.kind == "DIFile":
			filename = node.fields.get("filename")
			return _unescape(filename[1:-1]) if filename else None
		ref = node.fields.get("file") or node.fields.get("scope")
	return None


__all__ = ["IRParseError", "parse_module", "parse_module_file", "parse_type", "parse_gep"]
