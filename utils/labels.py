# utils/labels.py
import re

# comma, full-width comma, ideographic comma, semicolon, pipe, slash, ampersand, plus
LABEL_DELIMITERS = re.compile(r'[,，、;|/&+]')
LABEL_SEPARATOR = ', '


def split_labels(raw):
    """Split a stored label string into its individual category names.

    Tokens are trimmed and empty tokens dropped, so a string made only of
    delimiters and whitespace yields an empty list.
    """
    if not raw:
        return []
    tokens = (token.strip() for token in LABEL_DELIMITERS.split(raw))
    return [token for token in tokens if token]


def unique_labels(raw):
    """split_labels without repeats, first occurrence wins."""
    seen = []
    for label in split_labels(raw):
        if label not in seen:
            seen.append(label)
    return tuple(seen)


def join_labels(labels):
    """Encode a label set back into the stored delimited form."""
    return LABEL_SEPARATOR.join(labels)
