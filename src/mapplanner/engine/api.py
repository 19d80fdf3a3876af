"""Core API for map editing operations.

This module provides the main interface for applying named operations
to map documents, singly or as an all-or-nothing batch.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..core.document import MapDocument
from ..core.model import Entity
from .ops import get_operation
from .validators import InvalidOperation, ValidationWarning

LOGGER = logging.getLogger(__name__)


def apply(document: MapDocument, operation: dict) -> Optional[Entity]:
    """Apply an operation to a document in place.

    Args:
        document: The document to modify.
        operation: Dictionary describing the operation, e.g.
            ``{"op": "move_room", "room": 3, "x": 40, "y": 60}``.

    Returns:
        The entity the operation created or modified, if any.

    Raises:
        ValueError: If the operation is not an object, or its type is
            missing or not recognized.
        InvalidOperation: If the operation's precheck fails.
        ValidationWarning: If the operation would create degenerate geometry.
    """
    if not isinstance(operation, dict):
        raise ValueError(f"Operation must be an object, got {operation!r}")

    operation_type = operation.get("op") or operation.get("type")

    if operation_type is None:
        raise ValueError("Operation must have an 'op' or 'type' field")
    if not isinstance(operation_type, str):
        raise ValueError(f"Unknown operation type: {operation_type!r}")

    try:
        op = get_operation(operation_type)
    except KeyError:
        raise ValueError(f"Unknown operation type: {operation_type}") from None

    # Extract operation parameters (exclude 'op' and 'type' fields)
    params = {k: v for k, v in operation.items() if k not in ["op", "type"]}

    op.precheck(document, **params)
    result = op.apply(document, **params)
    LOGGER.debug("Applied %s %s", operation_type, params)
    return result


def apply_operations(document: MapDocument, operations: List[dict]) -> List[Dict[str, Any]]:
    """Apply a list of operations as a single edit.

    The operations run in order against a copy of the document. The copy
    is swapped in only if every operation succeeds; otherwise the
    document is left untouched and the first error is raised.

    Args:
        document: The document to modify.
        operations: List of operation dictionaries.

    Returns:
        One result per operation, containing:
          - operation: The operation that was applied
          - id: Id of the created or modified entity, if it has one

    Raises:
        ValueError: If an operation is not an object or its type is not
            recognized.
        InvalidOperation: If any operation fails its precheck or validation.
    """
    if not isinstance(operations, list):
        raise ValueError("Operations must be a list")

    working = document.snapshot()
    results = []

    for i, operation in enumerate(operations):
        try:
            entity = apply(working, operation)
        except ValidationWarning as e:
            raise InvalidOperation(f"Operation {i + 1} ({operation.get('op')}) rejected: {e}") from e
        except InvalidOperation as e:
            raise InvalidOperation(f"Operation {i + 1} ({operation.get('op')}) failed: {e}") from e

        results.append({"operation": operation, "id": getattr(entity, "id", None)})

    document.replace_with(working)
    LOGGER.info("Applied %d operations", len(operations))
    return results
