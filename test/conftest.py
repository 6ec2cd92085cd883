"""
Pytest configuration and shared fixtures for conditionbuilder tests.

Path setup is handled by pyproject.toml [tool.pytest.ini_options] pythonpath.
"""

import io
import sys

import pytest


def pytest_configure(config):
    """Ensure stdout/stderr use UTF-8 on Windows so operator symbols print."""
    if sys.stdout and hasattr(sys.stdout, "buffer"):
        sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8", errors="replace")
    if sys.stderr and hasattr(sys.stderr, "buffer"):
        sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding="utf-8", errors="replace")

from conditionbuilder.condition_tree import IdGenerator
from conditionbuilder.config import ConversionOptions


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def ids():
    """Deterministic id source: t-1, t-2, ..."""
    return IdGenerator(prefix="t")


@pytest.fixture
def plain():
    """Default conversion options ({"var": path} references)."""
    return ConversionOptions(use_template_syntax=False)


@pytest.fixture
def template():
    """Template-syntax conversion options ({{path}} strings)."""
    return ConversionOptions(use_template_syntax=True)
