"""Seed the default system tags on first startup.

Loads a JSON fixture of tag definitions and creates them best effort:
an item that fails validation or collides with an existing tag is
skipped and reported in the returned SeedResult. Skips entirely when
system tags already exist.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..schemas.tag import SeedResult, SeedSkip, TagCreate

logger = logging.getLogger(__name__)

_FIXTURE_PATH = Path(__file__).parent.parent / "fixtures" / "system_tags.json"


def seed_system_tags(db: Session, fixture_path: Optional[Path] = None) -> SeedResult:
    """Create the fixture's system tags if the store has none yet.

    Args:
        db: An open SQLAlchemy session.
        fixture_path: Override for the packaged fixture.

    Returns:
        The created tags and the skipped items with their reasons.
    """
    from ..repositories.tag_repository import TagRepository
    from ..services.tag_service import TagService

    existing = TagRepository(db).find_system_tags()
    if existing:
        logger.debug("Store has %d system tags, skipping seed", len(existing))
        return SeedResult()

    path = fixture_path or _FIXTURE_PATH
    if not path.exists():
        logger.debug("No seed fixture at %s", path)
        return SeedResult()

    try:
        with open(path, encoding="utf-8") as f:
            fixture = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to read seed fixture: %s", e)
        return SeedResult()

    definitions = []
    invalid = []
    for item in fixture.get("tags", []):
        try:
            definitions.append(TagCreate(**item))
        except ValidationError as e:
            name = str(item.get("name", "?"))
            logger.warning("Invalid seed tag '%s': %s", name, e.errors()[0]["msg"])
            invalid.append(SeedSkip(name=name, reason=e.errors()[0]["msg"]))

    result = TagService(db).create_system_tags(definitions)
    result.skipped = invalid + result.skipped
    return result
