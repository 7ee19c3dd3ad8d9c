# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from boundscheck.config import ENV_DEBUG, ENV_POLICY, Options, ViolationPolicy


def test_defaults():
	opts = Options.from_env({})
	assert opts == Options()
	assert opts.enabled
	assert opts.policy is ViolationPolicy.ABORT
	assert not opts.debug


@pytest.mark.parametrize("raw", ["1", "yes", "TRUE", "on"])
def test_debug_env_truthy(raw):
	assert Options.from_env({ENV_DEBUG: raw}).debug


@pytest.mark.parametrize("raw", ["", "0", "false", "Off"])
def test_debug_env_falsy(raw):
	assert not Options.from_env({ENV_DEBUG: raw}).debug


def test_policy_from_env():
	assert Options.from_env({ENV_POLICY: " Collect "}).policy is ViolationPolicy.COLLECT


def test_unknown_policy_is_rejected():
	with pytest.raises(ValueError, match="unknown violation policy"):
		Options.from_env({ENV_POLICY: "ignore"})


def test_overrides_skip_unset_values():
	base = Options(debug=True)
	opts = base.with_overrides(debug=None, json=True, policy=ViolationPolicy.COLLECT)
	assert opts.debug
	assert opts.json
	assert opts.policy is ViolationPolicy.COLLECT
	assert base.json is False


def test_reads_process_environment(monkeypatch):
	monkeypatch.setenv(ENV_POLICY, "collect")
	assert Options.from_env().policy is ViolationPolicy.COLLECT
