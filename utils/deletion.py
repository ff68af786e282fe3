# utils/deletion.py
from dataclasses import dataclass, field
from enum import Enum
import asyncio
import logging
import threading

from models import OTHER
from utils.errors import DeletionInProgressError, LabelCleanupError, PartialDeletionError, PersistenceError

logger = logging.getLogger(__name__)


class DeletionState(str, Enum):
    IDLE = 'idle'
    RESOLVING = 'resolving'
    DELETING = 'deleting'


@dataclass
class DeletionReport:
    category: str
    colors: list = field(default_factory=list)
    requested_ids: list = field(default_factory=list)
    deleted_ids: list = field(default_factory=list)
    failed_ids: list = field(default_factory=list)

    @property
    def requested_count(self):
        return len(self.requested_ids)

    @property
    def deleted_count(self):
        return len(self.deleted_ids)

    def to_json(self):
        return {
            'category': self.category,
            'colors': self.colors,
            'requested_count': self.requested_count,
            'deleted_count': self.deleted_count,
            'failed_ids': self.failed_ids,
        }


def partition_candidates(candidates, name, labels_by_color):
    """Split candidates into (delete outright, verify by verse text).

    Only unlabeled highlights on colors with several labels need the text
    check. Everything else is decided here: an explicit label must match the
    category, and single-label colors are unambiguous. For OTHER there is no
    label constraint at all.
    """
    straight, needs_check = [], []
    for highlight in candidates:
        if name == OTHER:
            straight.append(highlight)
        elif highlight.label:
            if highlight.label == name:
                straight.append(highlight)
        elif len(labels_by_color.get(highlight.color, ())) >= 2:
            needs_check.append(highlight)
        else:
            straight.append(highlight)
    return straight, needs_check


def verified_for_deletion(highlight, name, labels):
    """Conservative text check for a highlight on a multi-label color.

    The verse must mention the category and none of its sibling labels; a
    highlight that mentions a sibling is shared and stays.
    """
    text = (highlight.text or '').lower()
    if name.lower() not in text:
        return False
    for sibling in labels:
        if sibling != name and sibling.lower() in text:
            return False
    return True


class CategoryDeletionEngine:
    """Deletes every highlight of a category while protecting shared ones.

    One deletion runs at a time per engine. The guard is a lock rather than
    a flag because each Flask request thread runs its own event loop. The
    work runs in its own task and callers await it through
    ``asyncio.shield``, so a caller that goes away does not leave a category
    half deleted.
    """

    def __init__(self, registry, highlight_store, cache=None):
        self.registry = registry
        self.highlight_store = highlight_store
        self.cache = cache if cache is not None else highlight_store.cache
        self.state = DeletionState.IDLE
        self._task = None
        self._guard = threading.Lock()

    @property
    def in_flight(self):
        return self._guard.locked()

    async def delete_category(self, name):
        if not self._guard.acquire(blocking=False):
            raise DeletionInProgressError(f"A category deletion is already running ({self.state.value})")
        self.state = DeletionState.RESOLVING
        self._task = asyncio.ensure_future(self._run(name))
        self._task.add_done_callback(self._finish)
        return await asyncio.shield(self._task)

    def _finish(self, task):
        # Runs even when the task is cancelled before it ever started.
        self.state = DeletionState.IDLE
        self._guard.release()
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"Category deletion finished with error: {task.exception()}")

    async def _run(self, name):
        colors = []
        try:
            colors = await self.registry.colors_for_category(name)
            report = DeletionReport(category=name, colors=list(colors))
            if not colors:
                logger.info(f"Category '{name}' has no colors, nothing to delete")
                return report

            candidates = await self.highlight_store.fetch_highlights_for_colors(colors)
            assignments = await self.registry.assignments()
            labels_by_color = {
                color: assignments[color].labels if color in assignments else ()
                for color in colors
            }
            straight, needs_check = partition_candidates(candidates, name, labels_by_color)

            verified = []
            if needs_check:
                enriched = await self.highlight_store.enrich_with_text(needs_check)
                verified = [
                    h for h in enriched
                    if verified_for_deletion(h, name, labels_by_color.get(h.color, ()))
                ]
                logger.info(
                    f"Category '{name}': {len(verified)} of {len(needs_check)} shared highlights verified"
                )

            report.requested_ids = list(dict.fromkeys(h.id for h in straight + verified))

            self.state = DeletionState.DELETING
            if report.requested_ids:
                result = await self.highlight_store.bulk_delete(report.requested_ids)
                report.deleted_ids = result.deleted_ids
                report.failed_ids = result.failed_ids
                if not result.complete:
                    raise PartialDeletionError(
                        f"Deleted {report.deleted_count} of {report.requested_count} highlights in '{name}'",
                        report,
                    )

            if name != OTHER:
                try:
                    for color in colors:
                        await self.registry.remove_label(color, name)
                except PersistenceError as e:
                    raise LabelCleanupError(
                        f"Deleted {report.deleted_count} highlights in '{name}' but could not remove the label",
                        report,
                    ) from e

            logger.info(f"Deleted category '{name}': {report.deleted_count} highlights removed")
            return report
        finally:
            self.cache.invalidate(colors)
            self.state = DeletionState.IDLE
