"""
Environment parsing helpers shared by both service configs.
"""
import os
from typing import List, Optional

# Minimum length for shared secrets
MIN_SECRET_LENGTH = 16


def parse_int_env(key: str, default: int) -> int:
    """
    Parse integer environment variable, stripping comments and whitespace.

    Handles cases like:
    - "4001  # comment" -> 4001
    - "4001" -> 4001
    - None -> default
    """
    value = os.environ.get(key)
    if not value:
        return default

    if "#" in value:
        value = value.split("#")[0]
    value = value.strip()

    if not value:
        return default

    try:
        return int(value)
    except ValueError:
        return default


def optional_env(key: str) -> Optional[str]:
    """Treat unset and empty variables the same."""
    value = os.environ.get(key, "").strip()
    return value or None


def parse_host_list(value: str) -> List[str]:
    """Split a comma-separated host list, dropping blanks."""
    return [h.strip() for h in value.split(",") if h.strip()]


def require_secret(key: str, value: Optional[str]) -> None:
    if len(value or "") < MIN_SECRET_LENGTH:
        raise ValueError(f"{key} must be at least {MIN_SECRET_LENGTH} characters")
