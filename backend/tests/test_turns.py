"""Tests for the per-character turn guard."""

import pytest

from chaat.services.chat.errors import TurnInProgressError
from chaat.services.chat.turns import TurnGuard


def test_second_hold_for_same_character_rejected():
    guard = TurnGuard()
    with guard.hold("char1"):
        assert guard.is_active("char1")
        with pytest.raises(TurnInProgressError):
            with guard.hold("char1"):
                pass
        # Other characters are independent
        with guard.hold("char2"):
            assert guard.is_active("char2")
    assert not guard.is_active("char1")
    assert not guard.is_active("char2")


def test_released_after_error():
    guard = TurnGuard()
    with pytest.raises(RuntimeError):
        with guard.hold("char1"):
            raise RuntimeError("stream died")
    assert not guard.is_active("char1")
