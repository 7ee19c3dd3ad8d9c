# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source span attached to diagnostics.

IR locations come from `!dbg` attachments and are best-effort: any of the
fields may be missing. `Span()` is the sentinel for "no location known".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	"""Best-effort file/line/column plus the raw location object it came from."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None
	raw: Any = None

	@classmethod
	def from_loc(cls, loc: Any) -> "Span":
		"""
		Build a Span from an IR debug location (or anything shaped like one).

		A Span is returned unchanged and `None` maps to `Span()`.
		"""
		if loc is None:
			return cls()
		if isinstance(loc, cls):
			return loc
		return cls(
			file=getattr(loc, "file", None) or getattr(loc, "filename", None) or None,
			line=getattr(loc, "line", None),
			column=getattr(loc, "column", None),
			raw=loc,
		)

	@property
	def is_known(self) -> bool:
		return self.line is not None

	def position(self) -> str:
		"""`line:column` with `?` for whatever is unknown."""
		line = "?" if self.line is None else str(self.line)
		column = "?" if self.column is None else str(self.column)
		return f"{line}:{column}"


__all__ = ["Span"]
