"""Shared pytest fixtures for ModelTimer tests."""

import sys
import pytest

from PyQt6.QtCore import QCoreApplication

from modeltimer.clock import VirtualClock
from modeltimer.countdown import CountdownTimer
from modeltimer.model_timer import ModelTimer


@pytest.fixture(scope="session")
def qapp():
    """A single QCoreApplication instance shared across the entire test run."""
    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    yield app


@pytest.fixture
def clock():
    """Simulated clock starting at t=0.  Time moves only via advance()."""
    return VirtualClock()


@pytest.fixture
def countdown(clock):
    """Fresh CountdownTimer with no duration on the virtual clock."""
    return CountdownTimer(clock)


@pytest.fixture
def timer(qapp, clock):
    """Fresh ModelTimer on the virtual clock with standard durations."""
    return ModelTimer(clock)
