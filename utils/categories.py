# utils/categories.py
from datetime import datetime, timezone
import logging

from config import Config
from models import HIGHLIGHT_COLORS, OTHER, Category, CategoryAssignment, find_color
from utils.errors import NotFoundError, ValidationError
from utils.labels import unique_labels

logger = logging.getLogger(__name__)


def sort_category_names(names):
    return sorted(names, key=lambda name: (name.lower(), name))


class CategoryRegistry:
    """Owns the color -> labels assignments of one user.

    The remote table is the source of truth; ``_assignments`` is a
    read-through cache that is only updated after a write succeeded.
    ``highlight_source`` must provide ``highlighted_colors()``, used to
    decide which colors fall into the synthetic OTHER category.
    """

    def __init__(self, store, user_id, highlight_source, palette=HIGHLIGHT_COLORS, table=None):
        self.store = store
        self.user_id = user_id
        self.highlight_source = highlight_source
        self.palette = tuple(palette)
        self.table = table or Config.CATEGORIES_TABLE
        self._assignments = None

    async def refresh(self):
        rows = await self.store.select(self.table, filters={'user_id': self.user_id})
        assignments = {}
        for row in rows:
            assignment = CategoryAssignment.from_row(row)
            assignments[assignment.color] = assignment
        self._assignments = assignments
        logger.debug(f"Loaded {len(assignments)} category assignments for {self.user_id}")
        return dict(assignments)

    async def assignments(self):
        if self._assignments is None:
            await self.refresh()
        return dict(self._assignments)

    async def labels_for_color(self, color):
        assignment = (await self.assignments()).get(color)
        return assignment.labels if assignment else ()

    async def _unassigned_highlighted_colors(self, assignments):
        colors = await self.highlight_source.highlighted_colors()
        return [
            color for color in colors
            if color not in assignments or not assignments[color].labels
        ]

    async def list_categories(self):
        """All category names, alphabetical, with OTHER last when it applies."""
        assignments = await self.assignments()
        names = set()
        for assignment in assignments.values():
            names.update(assignment.labels)

        categories = [Category(name) for name in sort_category_names(names)]
        if await self._unassigned_highlighted_colors(assignments):
            categories.append(Category(OTHER, is_synthetic=True))
        return categories

    async def colors_for_category(self, name):
        assignments = await self.assignments()
        if name == OTHER:
            return await self._unassigned_highlighted_colors(assignments)
        return [color for color, assignment in assignments.items() if name in assignment.labels]

    async def set_label(self, color, raw_label):
        """Create or replace the labels of a palette color."""
        entry = find_color(self.palette, color)
        if entry is None:
            raise NotFoundError(f"Unknown highlight color: {color}")

        labels = unique_labels(raw_label)
        if not labels:
            raise ValidationError("Label must contain at least one category name")
        if any(label.upper() == OTHER for label in labels):
            raise ValidationError(f"'{OTHER}' is reserved for unlabeled colors")

        return await self._write(entry.hex, labels)

    async def _write(self, color, labels):
        assignment = CategoryAssignment(color=color, labels=tuple(labels))
        await self.store.upsert(
            self.table,
            {
                'user_id': self.user_id,
                'color': color,
                'label': assignment.label_string,
                'updated_at': datetime.now(timezone.utc).isoformat(),
            },
            on_conflict='user_id,color',
        )
        if self._assignments is not None:
            self._assignments[color] = assignment
        logger.info(f"Color {color} labeled '{assignment.label_string}'")
        return assignment

    async def delete_assignment(self, color):
        if color == OTHER:
            raise ValidationError(f"'{OTHER}' is not a stored assignment")
        assignments = await self.assignments()
        if color not in assignments:
            raise NotFoundError(f"No category assignment for color {color}")

        await self.store.delete(self.table, filters={'user_id': self.user_id, 'color': color})
        self._assignments.pop(color, None)
        logger.info(f"Removed category assignment for color {color}")

    async def remove_label(self, color, name):
        """Drop one label from a color; the row goes away with its last label.

        Returns the labels left on the color.
        """
        labels = await self.labels_for_color(color)
        remaining = tuple(label for label in labels if label != name)
        if remaining == labels:
            return labels
        if not remaining:
            await self.delete_assignment(color)
        else:
            await self._write(color, remaining)
        return remaining
