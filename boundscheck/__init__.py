# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
boundscheck: compile-time detection of out-of-bounds array accesses in LLVM IR.

Packages:
  - boundscheck.core: diagnostics and spans
  - boundscheck.ir: IR types, nodes, textual reader/printer, llvmlite bridge
  - boundscheck.passes: instruction collector, bounds check, reporter, pass manager
  - boundscheck.driver: command-line driver (`python -m boundscheck`)
"""

__version__ = "0.1.0"
