# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Shared diagnostic plumbing."""

from .span import Span
from .diagnostics import Diagnostic, diag_to_json, format_human

__all__ = ["Span", "Diagnostic", "diag_to_json", "format_human"]
