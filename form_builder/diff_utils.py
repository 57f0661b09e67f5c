"""
Snapshot diff utilities for the schema store.
Compares two store snapshots with DeepDiff and summarizes the result for
change notifications and log output.
"""

from typing import Dict, Any, List, Union
from deepdiff import DeepDiff
import logging

from form_builder.models import FormSnapshot

logger = logging.getLogger(__name__)

SnapshotLike = Union[FormSnapshot, Dict[str, Any]]

# DeepDiff report sections tracked in summaries
_CHANGE_SECTIONS = (
    'values_changed',
    'type_changes',
    'dictionary_item_added',
    'dictionary_item_removed',
    'iterable_item_added',
    'iterable_item_removed',
)


def _as_dict(snapshot: SnapshotLike) -> Dict[str, Any]:
    if isinstance(snapshot, FormSnapshot):
        return snapshot.model_dump(mode='json')
    return dict(snapshot)


def calculate_snapshot_diff(before: SnapshotLike, after: SnapshotLike) -> Dict[str, Any]:
    """
    Calculate differences between two snapshots.

    List order is significant here: field and page order is user-visible, so a
    reorder shows up as changed values at the swapped positions.

    Args:
        before: Snapshot (or its dict form) prior to the operation
        after: Snapshot (or its dict form) after the operation

    Returns:
        Dict keyed by DeepDiff section name (values_changed, iterable_item_added, ...)
        with plain-dict values. Empty when nothing changed.
    """
    diff = DeepDiff(
        _as_dict(before),
        _as_dict(after),
        ignore_order=False,
        verbose_level=2
    )
    diff_dict = diff.to_dict() if hasattr(diff, 'to_dict') else dict(diff)

    processed_diff: Dict[str, Any] = {}
    for section in _CHANGE_SECTIONS:
        if section in diff_dict and diff_dict[section]:
            processed_diff[section] = dict(diff_dict[section])

    return processed_diff


def has_changes(diff: Dict[str, Any]) -> bool:
    """Check whether a processed diff contains any change."""
    return any(diff.get(section) for section in _CHANGE_SECTIONS)


def get_change_summary(diff: Dict[str, Any]) -> Dict[str, int]:
    """
    Count changes by kind.

    Returns:
        Dict with 'modified', 'added', 'removed' and 'total' counts
    """
    modified = len(diff.get('values_changed', {})) + len(diff.get('type_changes', {}))
    added = len(diff.get('dictionary_item_added', {})) + len(diff.get('iterable_item_added', {}))
    removed = len(diff.get('dictionary_item_removed', {})) + len(diff.get('iterable_item_removed', {}))

    return {
        'modified': modified,
        'added': added,
        'removed': removed,
        'total': modified + added + removed
    }


def list_changed_paths(diff: Dict[str, Any]) -> List[str]:
    """
    Flatten a processed diff into readable paths.

    DeepDiff paths such as ``root['fields'][2]['label']`` are shortened to
    ``fields[2].label``.
    """
    paths: List[str] = []
    for section in _CHANGE_SECTIONS:
        for raw_path in diff.get(section, {}):
            paths.append(_clean_path(raw_path))
    return paths


def _clean_path(path: Any) -> str:
    """Clean up a DeepDiff path for display."""
    text = str(path)
    if text.startswith('root'):
        text = text[4:]
    text = text.replace("']['", ".").replace("['", ".").replace("']", "")
    return text.lstrip('.')
