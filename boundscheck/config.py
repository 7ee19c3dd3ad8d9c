# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Run options.

Sources, lowest precedence first: defaults, environment
(`BOUNDSCHECK_DEBUG`, `BOUNDSCHECK_POLICY`), command-line flags.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Mapping, Optional

ENV_DEBUG = "BOUNDSCHECK_DEBUG"
ENV_POLICY = "BOUNDSCHECK_POLICY"

_FALSE_WORDS = frozenset({"", "0", "false", "no", "off"})


class ViolationPolicy(Enum):
	ABORT = "abort"  # first violation ends the run
	COLLECT = "collect"  # analyze everything, report every violation

	@classmethod
	def parse(cls, raw: str) -> "ViolationPolicy":
		try:
			return cls(raw.strip().lower())
		except ValueError:
			choices = ", ".join(p.value for p in cls)
			raise ValueError(f"unknown violation policy {raw!r} (expected one of: {choices})") from None


@dataclass(frozen=True)
class Options:
	enabled: bool = True
	policy: ViolationPolicy = ViolationPolicy.ABORT
	debug: bool = False
	json: bool = False
	verify: bool = False
	emit_decls: bool = False
	dump_ir: bool = False

	@classmethod
	def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Options":
		env = os.environ if environ is None else environ
		opts = cls(debug=env.get(ENV_DEBUG, "").strip().lower() not in _FALSE_WORDS)
		raw_policy = env.get(ENV_POLICY)
		if raw_policy:
			opts = replace(opts, policy=ViolationPolicy.parse(raw_policy))
		return opts

	def with_overrides(self, **overrides: Any) -> "Options":
		"""Apply overrides whose value is not None (unset CLI flags stay None)."""
		return replace(self, **{k: v for k, v in overrides.items() if v is not None})


__all__ = ["ENV_DEBUG", "ENV_POLICY", "ViolationPolicy", "Options"]
