"""
Input validation utilities.
"""

from typing import Any, Optional, Sequence, Tuple

from ..core.exceptions import ValidationError


# Maximum limits
MAX_FIELD_NAME_LENGTH = 255
MAX_FIELD_PATH_DEPTH = 32


def validate_field_name(name: Any, what: str = "field name") -> str:
    """
    Validate a top-level field (attribute) name.

    Args:
        name: The name to validate
        what: How to describe the name in error messages

    Returns:
        The validated name

    Raises:
        ValidationError: If the name is invalid
    """
    if not isinstance(name, str):
        raise ValidationError(f"{what} must be a string, got {type(name).__name__}")

    if not name:
        raise ValidationError(f"{what} cannot be empty")

    if len(name) > MAX_FIELD_NAME_LENGTH:
        raise ValidationError(
            f"{what} too long: {len(name)} characters (max {MAX_FIELD_NAME_LENGTH})"
        )

    return name


def validate_field_path(fp: Sequence[str]) -> Tuple[str, ...]:
    """
    Validate a field path.

    Every segment must be a non-empty string.

    Raises:
        ValidationError: If the path is empty or has a bad segment
    """
    if isinstance(fp, str):
        raise ValidationError("field path must be a sequence of segments, got a string")

    fp = tuple(fp)
    if not fp:
        raise ValidationError("field path cannot be empty")

    if len(fp) > MAX_FIELD_PATH_DEPTH:
        raise ValidationError(
            f"field path too deep: {len(fp)} segments (max {MAX_FIELD_PATH_DEPTH})"
        )

    for seg in fp:
        if not isinstance(seg, str) or not seg:
            raise ValidationError(f"invalid field path segment {seg!r} in {fp!r}")

    return fp


def validate_limit(limit: Any) -> int:
    """
    Validate a result limit (0 = unbounded).

    Raises:
        ValidationError: If the limit is negative or not an integer
    """
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise ValidationError(f"limit must be an integer, got {type(limit).__name__}")

    if limit < 0:
        raise ValidationError(f"limit must be non-negative, got {limit}")

    return limit


def validate_page_size(page_size: int, max_size: Optional[int] = 10000) -> int:
    """Validate a backend page or batch size."""
    if isinstance(page_size, bool) or not isinstance(page_size, int):
        raise ValidationError(
            f"page size must be an integer, got {type(page_size).__name__}"
        )

    if page_size < 1:
        raise ValidationError(f"page size must be at least 1, got {page_size}")

    if max_size is not None and page_size > max_size:
        raise ValidationError(f"page size too large: {page_size} (max {max_size})")

    return page_size
