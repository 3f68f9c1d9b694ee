"""String normalization helpers."""

import re
import unicodedata


def normalize_string(text: str) -> str:
    """
    Normalize whitespace and strip surrounding blanks.

    Example:
        >>> normalize_string("  Two   Words ")
        'Two Words'
    """
    return re.sub(r"\s+", " ", text).strip()


def slugify(text: str) -> str:
    """
    Build a URL slug from a title.

    Applies the following transformations in order:
    1. Normalize unicode (NFKD decomposition)
    2. Remove combining characters (accents/diacritics)
    3. Convert to lowercase
    4. Replace every run of characters other than letters, digits,
       underscores and hyphens with a single hyphen
    5. Strip leading/trailing hyphens

    Example:
        >>> slugify("Programming Elixir!")
        'programming-elixir'
        >>> slugify("Björk: Army of Me")
        'bjork-army-of-me'
    """
    normalized = unicodedata.normalize("NFKD", text)
    normalized = "".join(char for char in normalized if unicodedata.category(char) != "Mn")
    normalized = normalized.lower()
    normalized = re.sub(r"[^\w-]+", "-", normalized)
    return normalized.strip("-")
