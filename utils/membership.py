# utils/membership.py
import logging

from models import OTHER

logger = logging.getLogger(__name__)


def needs_text(highlight, labels):
    """True when only the verse text can tell which label a highlight has."""
    return len(labels) >= 2 and not highlight.label and highlight.text is None


def is_member(highlight, name, labels):
    """Decide whether a highlight is shown under category ``name``.

    ``labels`` are the split labels of the highlight's color. For colors
    carrying several labels, an explicit label on the highlight decides;
    otherwise the verse text is searched for the category name. A highlight
    whose text matches none of its color's labels is shown under all of
    them rather than under none.
    """
    if name == OTHER:
        return not labels
    if not labels:
        return False
    if len(labels) == 1:
        return labels[0] == name
    if highlight.label:
        return highlight.label == name

    text = (highlight.text or '').lower()
    if not any(label.lower() in text for label in labels):
        return name in labels
    return name.lower() in text


class MembershipResolver:
    """Lists the highlights shown when a category is expanded."""

    def __init__(self, registry, highlight_store):
        self.registry = registry
        self.highlight_store = highlight_store

    async def highlights_for_category(self, name):
        colors = await self.registry.colors_for_category(name)
        if not colors:
            return []

        highlights = await self.highlight_store.load_for_display(colors)
        assignments = await self.registry.assignments()
        labels_by_color = {
            color: assignments[color].labels if color in assignments else ()
            for color in colors
        }

        pending = [h for h in highlights if needs_text(h, labels_by_color.get(h.color, ()))]
        if pending:
            enriched = await self.highlight_store.enrich_with_text(pending)
            self.highlight_store.merge(enriched)
            by_id = {h.id: h for h in enriched}
            highlights = [by_id.get(h.id, h) for h in highlights]

        members = [h for h in highlights if is_member(h, name, labels_by_color.get(h.color, ()))]
        logger.debug(f"Category '{name}' shows {len(members)} of {len(highlights)} highlights")
        return members
