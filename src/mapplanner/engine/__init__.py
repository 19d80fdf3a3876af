"""Engine module for map editing operations.

Validation lives in :mod:`.validators`; scripted edits are applied through
:func:`mapplanner.engine.api.apply`.
"""

from .validators import InvalidOperation, ValidationWarning

__all__ = ["InvalidOperation", "ValidationWarning"]
