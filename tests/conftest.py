"""Pytest configuration to make the project root importable.

The application is a set of top-level modules, so ``import state`` and
friends must resolve when tests run from any directory.
"""

import os
import sys

import pytest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from models import ArtworkSummary  # noqa: E402


@pytest.fixture
def waves():
    """Five search hits for 'waves'."""
    return tuple(ArtworkSummary(id=100 + i, title=f"Waves {i}", image_id=f"img-{i}") for i in range(5))
