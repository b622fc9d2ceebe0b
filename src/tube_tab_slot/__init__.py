"""Public API for the tube tab & slot pipeline."""

from tube_tab_slot.contracts import (
    TabMode,
    TabSlotConfig,
    TabSlotOptions,
    TabSlotRunResult,
)
from tube_tab_slot.document import DocumentAdapter
from tube_tab_slot.errors import (
    AmbiguousSelection,
    AxisMatchNotFound,
    PlaneResolutionFailure,
    SelectionCountError,
    SelectionTypeError,
    TabSlotError,
)
from tube_tab_slot.runner import TabSlotCommand, run_tab_slot

__all__ = [
    "AmbiguousSelection",
    "AxisMatchNotFound",
    "DocumentAdapter",
    "PlaneResolutionFailure",
    "SelectionCountError",
    "SelectionTypeError",
    "TabMode",
    "TabSlotCommand",
    "TabSlotConfig",
    "TabSlotError",
    "TabSlotOptions",
    "TabSlotRunResult",
    "run_tab_slot",
]
