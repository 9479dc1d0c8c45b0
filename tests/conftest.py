"""Pytest configuration to make the project root importable.

This ensures ``import crunch`` and ``import crunch_ops`` work when tests are
run from the repository root or other locations without an install.
"""

import os
import sys

import pytest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from crunch.contracts import NodeInfo, UserCredentials  # noqa: E402


@pytest.fixture
def creds():
    return UserCredentials(user_id="user-1", user_secret_version="s1", user_secret="hunter2")


@pytest.fixture
def node():
    return NodeInfo(host_info={"hostname": "test-host"}, cpu_info=[{"cpu": 0}], workers=2)


class EmittedLines(list):
    """Collects emitted lines instead of printing them."""

    def emit(self, line):
        self.append(line)


@pytest.fixture
def lines():
    return EmittedLines()
