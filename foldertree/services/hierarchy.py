"""Acyclicity checks shared by the folder and tag hierarchies."""

import logging
from typing import Callable, List, Optional

from ..exceptions import CycleDetectedError

logger = logging.getLogger(__name__)

ParentLookup = Callable[[str], Optional[str]]


def ancestor_ids(start_id: Optional[str], get_parent_id: ParentLookup) -> List[str]:
    """``start_id`` and its ancestors up to the root, nearest first.

    A missing row ends the walk as if the root had been reached. A node
    seen twice means the stored hierarchy already has a loop.
    """
    chain: List[str] = []
    current = start_id
    while current is not None:
        if current in chain:
            raise CycleDetectedError(current, chain[-1], message=f"Existing hierarchy loops through {current}")
        chain.append(current)
        current = get_parent_id(current)
    return chain


def ensure_no_cycle(node_id: str, new_parent_id: Optional[str], get_parent_id: ParentLookup) -> None:
    """Raise CycleDetectedError if ``new_parent_id`` is ``node_id`` or one of its descendants."""
    if new_parent_id is None:
        return
    if node_id in ancestor_ids(new_parent_id, get_parent_id):
        logger.warning("Rejected re-parent that would create a cycle",
                       extra={"node_id": node_id, "parent_id": new_parent_id})
        raise CycleDetectedError(node_id, new_parent_id)
