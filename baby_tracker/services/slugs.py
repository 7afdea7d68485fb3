"""
Family slug validation and generation.

Slugs are the first path segment of every family page, so they must be
URL-safe and must not shadow one of the application's own routes.
"""

import random
import re
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from baby_tracker.models.family import Family

# Top-level paths used by the application itself
RESERVED_URLS = (
    "account",
    "api",
    "coming-soon",
    "family-manager",
    "family-select",
    "setup",
    "sphome",
    "login",
    "auth",
    "context",
    "globals",
    "layout",
    "metadata",
    "page",
    "template",
)

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
MIN_SLUG_LENGTH = 3
MAX_SLUG_LENGTH = 50

ADJECTIVES = (
    "brave", "bright", "bubbly", "calm", "cheerful", "clever", "cozy",
    "cuddly", "curious", "dainty", "dreamy", "fluffy", "friendly", "gentle",
    "giggly", "happy", "jolly", "kind", "little", "lucky", "merry", "mighty",
    "playful", "quiet", "rosy", "silly", "sleepy", "snuggly", "sparkly",
    "sunny", "sweet", "tiny", "wiggly", "witty",
)

ANIMALS = (
    "badger", "bear", "bunny", "cub", "deer", "dolphin", "duckling", "fawn",
    "finch", "fox", "frog", "hedgehog", "kitten", "koala", "lamb", "lion",
    "otter", "owl", "panda", "penguin", "puppy", "robin", "seal", "sparrow",
    "squirrel", "swan", "tiger", "turtle", "whale", "wren",
)


class SlugGenerationError(Exception):
    """No free slug could be found."""


@dataclass
class SlugValidation:
    """Outcome of validating a slug."""

    is_valid: bool
    error: Optional[str] = None


def is_reserved_slug(slug: str) -> bool:
    """Check whether a slug collides with an application route."""
    return slug.lower() in RESERVED_URLS


def validate_slug(slug: Optional[str]) -> SlugValidation:
    """
    Validate a candidate family slug.

    Rules are checked in order and the first failure is reported:
    non-empty, not reserved (in any letter case), allowed characters,
    minimum length, maximum length.

    Args:
        slug: Candidate slug

    Returns:
        SlugValidation with is_valid and the first error message
    """
    if not slug or not slug.strip():
        return SlugValidation(False, "Slug cannot be empty")

    if is_reserved_slug(slug):
        return SlugValidation(
            False, "This URL is reserved by the system and cannot be used"
        )

    if not SLUG_PATTERN.match(slug):
        return SlugValidation(
            False, "Slug can only contain lowercase letters, numbers, and hyphens"
        )

    if len(slug) < MIN_SLUG_LENGTH:
        return SlugValidation(False, "Slug must be at least 3 characters long")

    if len(slug) > MAX_SLUG_LENGTH:
        return SlugValidation(False, "Slug must be less than 50 characters")

    return SlugValidation(True)


def generate_slug() -> str:
    """Random "adjective-animal" slug."""
    return f"{random.choice(ADJECTIVES)}-{random.choice(ANIMALS)}"


def generate_slug_with_number(digits: int = 4) -> str:
    """Random "adjective-animal-1234" slug with a fixed number of digits."""
    number = random.randint(10 ** (digits - 1), 10 ** digits - 1)
    return f"{generate_slug()}-{number}"


def slug_exists(session: Session, slug: str) -> bool:
    """Check whether any family (active or not) already uses a slug."""
    stmt = select(Family.id).where(Family.slug == slug).limit(1)
    return session.scalar(stmt) is not None


def generate_unique_slug(session: Session) -> str:
    """
    Generate a slug no family is using yet.

    Tries ten plain slugs, then ten with a four digit suffix, then a
    single one with a six digit suffix.

    Raises:
        SlugGenerationError: If every candidate is taken
    """
    for _ in range(10):
        slug = generate_slug()
        if not slug_exists(session, slug):
            return slug

    for _ in range(10):
        slug = generate_slug_with_number()
        if not slug_exists(session, slug):
            return slug

    slug = generate_slug_with_number(6)
    if slug_exists(session, slug):
        raise SlugGenerationError("Unable to generate a unique slug after multiple attempts")
    return slug
