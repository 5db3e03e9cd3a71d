"""
Structural diff of two content documents.

Used by the version comparison endpoint to report which paths of a
content_data document changed between two saved versions.
"""

from typing import Any, Dict, List, Tuple

MAX_DIFF_ENTRIES = 200


def _child_path(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _collect(before: Any, after: Any, path: str, diffs: List[Dict[str, Any]]) -> bool:
    """Append differences under `path`; returns True once the cap is hit."""
    if len(diffs) >= MAX_DIFF_ENTRIES:
        return True
    if before == after:
        return False

    if isinstance(before, list) and isinstance(after, list):
        for index in range(max(len(before), len(after))):
            left = before[index] if index < len(before) else None
            right = after[index] if index < len(after) else None
            if _collect(left, right, f"{path}[{index}]", diffs):
                return True
        return len(diffs) >= MAX_DIFF_ENTRIES

    if isinstance(before, dict) and isinstance(after, dict):
        keys = list(before.keys()) + [k for k in after.keys() if k not in before]
        for key in keys:
            if _collect(before.get(key), after.get(key), _child_path(path, key), diffs):
                return True
        return len(diffs) >= MAX_DIFF_ENTRIES

    diffs.append({"path": path or "$", "before": before, "after": after})
    return len(diffs) >= MAX_DIFF_ENTRIES


def collect_differences(before: Any, after: Any) -> Tuple[List[Dict[str, Any]], bool]:
    """
    Compare two JSON-like documents.

    Args:
        before: Base document
        after: Document to compare against the base

    Returns:
        Tuple of (differences, truncated). Each difference is a dict with
        ``path``, ``before`` and ``after``; ``truncated`` is True when the
        list was capped at MAX_DIFF_ENTRIES.
    """
    diffs: List[Dict[str, Any]] = []
    truncated = _collect(before, after, "", diffs)
    return diffs, truncated
