# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest


@pytest.fixture
def write_ll(tmp_path: Path) -> Callable[[str, str], Path]:
	"""Write an `.ll` file under tmp_path and return its path."""

	def _write(name: str, text: str) -> Path:
		path = tmp_path / name
		path.write_text(text, encoding="utf-8")
		return path

	return _write
