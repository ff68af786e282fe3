# models.py
from dataclasses import dataclass, field
from typing import Optional, Tuple

from utils.labels import join_labels, unique_labels

# Synthetic catch-all category for highlighted colors without a label
OTHER = 'OTHER'


@dataclass(frozen=True)
class HighlightColor:
    hex: str
    default_name: str


HIGHLIGHT_COLORS = (
    HighlightColor('#eab308', 'yellow'),
    HighlightColor('#22c55e', 'green'),
    HighlightColor('#06b6d4', 'blue'),
    HighlightColor('#f43f5e', 'red'),
    HighlightColor('#fb7185', 'rose'),
    HighlightColor('#14b8a6', 'teal'),
    HighlightColor('#6366f1', 'indigo'),
    HighlightColor('#f97316', 'orange'),
    HighlightColor('#f59e0b', 'amber'),
    HighlightColor('#ec4899', 'pink'),
    HighlightColor('#a855f7', 'purple'),
    HighlightColor('#94a3b8', 'gray'),
)


def find_color(palette, hex_value):
    """Return the palette entry for hex_value (case-insensitive), or None."""
    if not hex_value:
        return None
    wanted = hex_value.strip().lower()
    for color in palette:
        if color.hex.lower() == wanted:
            return color
    return None


@dataclass(frozen=True)
class CategoryAssignment:
    """Labels attached to one palette color.

    The stored form is a single delimited string; in memory the labels are
    kept as an ordered tuple so the single/multi-label question is answered
    once, when the row is loaded.
    """
    color: str
    labels: Tuple[str, ...] = ()

    @classmethod
    def from_row(cls, row):
        return cls(color=row['color'], labels=unique_labels(row.get('label')))

    @property
    def label_string(self):
        return join_labels(self.labels)

    @property
    def is_multi_label(self):
        return len(self.labels) >= 2


@dataclass(frozen=True)
class Category:
    name: str
    is_synthetic: bool = False


@dataclass
class Highlight:
    id: str
    book_id: int
    chapter: int
    verse: int
    version: str
    color: str
    label: Optional[str] = None
    text: Optional[str] = field(default=None, compare=False)

    @classmethod
    def from_row(cls, row):
        return cls(
            id=row['id'],
            book_id=row['book_id'],
            chapter=row['chapter'],
            verse=row['verse'],
            version=row.get('version'),
            color=row['color'],
            label=row.get('label') or None,
        )

    @property
    def verse_key(self):
        return (self.book_id, self.chapter, self.verse, self.version)

    def to_json(self):
        return {
            'id': self.id,
            'book_id': self.book_id,
            'chapter': self.chapter,
            'verse': self.verse,
            'version': self.version,
            'color': self.color,
            'label': self.label,
            'text': self.text,
        }


@dataclass
class Note:
    id: str
    book_id: int
    chapter: int
    verse: int
    version: str
    text: str
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row):
        return cls(
            id=row['id'],
            book_id=row['book_id'],
            chapter=row['chapter'],
            verse=row['verse'],
            version=row.get('version'),
            text=row.get('note_text') or '',
            updated_at=row.get('updated_at'),
        )
