"""Change computation between before/after snapshots.

Admin entries carry both the entity snapshot before and after the mutation.
``compute_changes`` derives an RFC 6902 JSON Patch from the pair so that
reviewers can see exactly which fields moved.

Functions:
    compute_changes: JSON Patch operations from diff_before to diff_after
"""

from typing import Any

import jsonpatch

from exchange_audit.audit.models import JSONValue


def compute_changes(before: JSONValue, after: JSONValue) -> list[dict[str, Any]] | None:
    """Compute JSON Patch operations between two snapshots.

    Args:
        before: Snapshot before the mutation (None when not captured).
        after: Snapshot after the mutation (None when not captured).

    Returns:
        List of JSON Patch operations, or None if either side is missing
        or the snapshots are identical.
    """
    if before is None or after is None:
        return None

    if not isinstance(before, (dict, list)) or not isinstance(after, (dict, list)):
        if before == after:
            return None
        return [{"op": "replace", "path": "", "value": after}]

    patch = jsonpatch.make_patch(before, after)

    # No operations means identical snapshots
    if not patch.patch:
        return None

    return list(patch.patch)
