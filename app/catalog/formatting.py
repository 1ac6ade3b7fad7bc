"""Category name formatting.

Category names are stored lower-cased with words joined by underscores
("female_clothing") and shown to clients with spaces ("female clothing").
Names that mix spaces and underscores are not guaranteed to round-trip.
"""


def to_storage_form(name: str | None) -> str | None:
    """Convert a human-readable category name to its stored form.

    Examples:
        >>> to_storage_form("Category Name")
        'category_name'
        >>> to_storage_form("Category")
        'category'

    Args:
        name: Category name as entered by a client.

    Returns:
        Lower-cased name with words joined by underscores, or None for
        empty input.
    """
    if not name:
        return None

    words = name.lower().split()
    if not words:
        return None
    if len(words) >= 2:
        return "_".join(words)
    return words[0]


def to_display_form(name: str | None) -> str | None:
    """Convert a stored category name back to its display form.

    Examples:
        >>> to_display_form("category_name")
        'category name'

    Args:
        name: Category name in storage form.

    Returns:
        Lower-cased name with underscores replaced by spaces, or None for
        empty input.
    """
    if not name:
        return None

    lowered = name.lower()
    parts = lowered.split("_")
    if len(parts) >= 2:
        return " ".join(parts).strip()
    return lowered
