import sys
from pathlib import Path

import pytest

# Add repo root to path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fractals import build_palette, extend_palette


@pytest.fixture
def rainbow16():
    return build_palette(16, "rainbow", "#1562c9", "#e22e2a")


@pytest.fixture
def extended_rainbow16(rainbow16):
    return extend_palette(rainbow16)
