"""Text processing utilities."""

import re

from clubhub.core.constants import MAX_SUBDOMAIN_LENGTH, MIN_SUBDOMAIN_LENGTH


SUBDOMAIN_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9-]*[a-z0-9])?$")


def generate_slug(name: str, max_length: int = MAX_SUBDOMAIN_LENGTH) -> str:
    """Generate a URL-safe slug from a name.

    Used to suggest a subdomain from an organization name.

    Args:
        name: The input string to slugify
        max_length: Maximum length of output slug (default 63)

    Returns:
        URL-safe lowercase slug

    Examples:
        >>> generate_slug("Riverside Rowing Club")
        'riverside-rowing-club'
        >>> generate_slug("St. Mary's FC")
        'st-marys-fc'
    """
    slug = name.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-_\s]+", "-", slug)
    return slug[:max_length].strip("-")


def normalize_subdomain(value: str) -> str:
    """Normalize and validate a tenant subdomain.

    Args:
        value: Subdomain as typed by the user

    Returns:
        The lower-cased, trimmed subdomain

    Raises:
        ValueError: If the subdomain is too short, too long or contains
            characters that are not valid in a DNS label

    Examples:
        >>> normalize_subdomain("  Acme ")
        'acme'
    """
    subdomain = value.strip().lower()
    if len(subdomain) < MIN_SUBDOMAIN_LENGTH:
        raise ValueError(
            f"Subdomain must be at least {MIN_SUBDOMAIN_LENGTH} characters"
        )
    if len(subdomain) > MAX_SUBDOMAIN_LENGTH:
        raise ValueError(
            f"Subdomain must be at most {MAX_SUBDOMAIN_LENGTH} characters"
        )
    if not SUBDOMAIN_PATTERN.match(subdomain):
        raise ValueError(
            "Subdomain may only contain letters, digits and hyphens, "
            "and cannot start or end with a hyphen"
        )
    return subdomain
