# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from boundscheck.config import ENV_DEBUG, ENV_POLICY


@pytest.fixture(autouse=True)
def _clean_boundscheck_env(monkeypatch) -> None:
	"""Run every test with the defaults, whatever the calling shell exports."""
	monkeypatch.delenv(ENV_DEBUG, raising=False)
	monkeypatch.delenv(ENV_POLICY, raising=False)
