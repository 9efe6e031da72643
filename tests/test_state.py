"""Tests for patch_core/evolution/state.py."""

import pytest

from patch_core.evolution.state import VersionState


def test_defaults_to_zero():
    state = VersionState()
    assert state.current == 0
    assert state.initial == 0


def test_advance_and_reset():
    state = VersionState(2)
    state.advance_to(5)
    state.advance_to(7)
    assert state.current == 7

    state.reset_to(2)
    assert state.current == 2
    assert state.initial == 2


def test_advance_must_increase():
    state = VersionState(3)
    with pytest.raises(ValueError):
        state.advance_to(3)
    with pytest.raises(ValueError):
        state.advance_to(1)
    assert state.current == 3
