# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Pass registry and the driver-side violation policy.

Analyses are created explicitly through `PASS_FACTORIES`; nothing registers
itself at import time. The manager runs every enabled pass over every
function of a unit and applies the policy:

  - ABORT: the first violation raises FatalBoundsError; remaining functions
    (and units) are never analyzed.
  - COLLECT: everything is analyzed and all violations are returned.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Protocol

from boundscheck.config import Options, ViolationPolicy
from boundscheck.ir.nodes import Function, Module
from boundscheck.passes.bounds_check import BoundsCheck, BoundsViolation, FunctionResult
from boundscheck.passes.reporter import report_fatal


class FunctionPass(Protocol):
	name: str

	def run_on_function(self, fn: Function, unit: Optional[Module] = None) -> FunctionResult:
		...


PassFactory = Callable[[Options], FunctionPass]


def _make_bounds_check(options: Options) -> FunctionPass:
	return BoundsCheck(stop_at_first=options.policy is ViolationPolicy.ABORT)


PASS_FACTORIES: Dict[str, PassFactory] = {
	"bounds-check": _make_bounds_check,
}


class UnknownPassError(KeyError):
	def __init__(self, name: str) -> None:
		super().__init__(name)
		self.name = name

	def __str__(self) -> str:
		known = ", ".join(sorted(PASS_FACTORIES))
		return f"unknown pass '{self.name}' (known passes: {known})"


def create_pass(name: str, options: Optional[Options] = None) -> FunctionPass:
	factory = PASS_FACTORIES.get(name)
	if factory is None:
		raise UnknownPassError(name)
	return factory(options or Options())


@dataclass
class ModuleResult:
	module: str
	results: List[FunctionResult] = field(default_factory=list)

	@property
	def violations(self) -> List[BoundsViolation]:
		return [v for r in self.results for v in r.violations]

	@property
	def modified(self) -> bool:
		return any(r.modified for r in self.results)


class PassManager:
	def __init__(self, passes: Iterable[FunctionPass], policy: ViolationPolicy = ViolationPolicy.ABORT) -> None:
		self.passes: List[FunctionPass] = list(passes)
		self.policy = policy

	@classmethod
	def from_options(cls, options: Options, names: Iterable[str] = ("bounds-check",)) -> "PassManager":
		passes = [create_pass(name, options) for name in names] if options.enabled else []
		return cls(passes, policy=options.policy)

	def run(self, unit: Module) -> ModuleResult:
		"""Run all passes over every function of `unit`, in definition order."""
		outcome = ModuleResult(module=unit.name)
		for fn in unit.functions.values():
			for pass_ in self.passes:
				result = pass_.run_on_function(fn, unit)
				outcome.results.append(result)
				if result.violations and self.policy is ViolationPolicy.ABORT:
					report_fatal(result.violations[:1])
		return outcome

	def run_all(self, units: Iterable[Module]) -> List[ModuleResult]:
		return [self.run(unit) for unit in units]


__all__ = [
	"FunctionPass",
	"PassFactory",
	"PASS_FACTORIES",
	"UnknownPassError",
	"create_pass",
	"ModuleResult",
	"PassManager",
]
