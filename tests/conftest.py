"""
Test configuration and fixtures
"""
import sys
from pathlib import Path

# Add src and the tests directory (for shared helpers) to Python path
project_root = Path(__file__).parent.parent
src_path = project_root / "src"
tests_path = Path(__file__).parent

sys.path.insert(0, str(src_path))
sys.path.insert(0, str(tests_path))

import pytest


@pytest.fixture
def effect_hash():
    """A 64-byte effect hash with distinct bytes."""
    return bytes(range(64))


@pytest.fixture
def randomizers():
    """Three distinct 32-byte randomizers."""
    return [bytes([i]) * 32 for i in (0x11, 0x22, 0x33)]
