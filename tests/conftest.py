"""
Shared test fixtures for the tube tab & slot pipeline.
"""
import sys
from pathlib import Path

import pytest

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tube_tab_slot.contracts import TabSlotConfig
from tube_tab_slot.mesh_document import MeshDocument


TAB_RADIUS = 0.010
TAB_WALL = 0.002
SLOT_RADIUS = 0.008
SLOT_WALL = 0.0015


@pytest.fixture
def config():
    return TabSlotConfig()


@pytest.fixture
def empty_document():
    """Document with only the default planes."""
    return MeshDocument()


@pytest.fixture
def cross_document():
    """Two tubes crossing at right angles through the origin.

    Tab tube runs along X (r=10 mm, wall 2 mm), slot tube along Y
    (r=8 mm, wall 1.5 mm). Each member carries its own path sketch and
    cross-section plane.
    """
    doc = MeshDocument()
    tab = doc.add_tube((-0.1, 0.0, 0.0), (0.1, 0.0, 0.0), TAB_RADIUS, TAB_WALL, name="Tab")
    slot = doc.add_tube((0.0, -0.1, 0.0), (0.0, 0.1, 0.0), SLOT_RADIUS, SLOT_WALL, name="Slot")
    return doc, tab, slot


@pytest.fixture
def layout_document():
    """Two crossing tubes whose paths live in one shared layout sketch."""
    doc = MeshDocument()
    doc.add_layout(
        [((-0.1, 0.0, 0.0), (0.1, 0.0, 0.0)), ((0.0, -0.1, 0.0), (0.0, 0.1, 0.0))],
        name="Layout",
    )
    tab = doc.add_tube((-0.1, 0.0, 0.0), (0.1, 0.0, 0.0), TAB_RADIUS, TAB_WALL,
                       name="Tab", path_in_subtree=False)
    slot = doc.add_tube((0.0, -0.1, 0.0), (0.0, 0.1, 0.0), SLOT_RADIUS, SLOT_WALL,
                        name="Slot", path_in_subtree=False)
    return doc, tab, slot
