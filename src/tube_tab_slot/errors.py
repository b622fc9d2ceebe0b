"""Exceptions raised by the tab & slot pipeline.

Every error is raised before the first feature-creating call, so the host
document is untouched when one propagates.
"""


class TabSlotError(Exception):
    """Base exception for tab & slot errors."""
    pass


class SelectionCountError(TabSlotError):
    """Selection is not exactly two entities."""
    pass


class SelectionTypeError(TabSlotError):
    """A selected entity cannot be resolved to a body."""
    pass


class TubeFeatureNotFound(TabSlotError):
    """No structural-member feature owns the selected body."""
    pass


class TubeProfileNotFound(TabSlotError):
    """The body has no cylindrical face to take radii from."""
    pass


class AxisMatchNotFound(TabSlotError):
    """No construction line matches the tube's cylinder axis."""
    pass


class AmbiguousSelection(TabSlotError):
    """Tab and slot resolved to the same construction line."""
    pass


class PlaneResolutionFailure(TabSlotError):
    """No usable cross-section reference plane was found."""
    pass
