"""
Catalog seeding.

Loads sample songs from YAML into an empty catalog. Songs need an owner,
so a seed account is looked up (or created with an unusable random
password) first.
"""

from __future__ import annotations

import logging
import secrets
from pathlib import Path
from typing import Any

import yaml

from fanrise.auth.passwords import hash_password
from fanrise.core.models import Account, Song, SongFields
from fanrise.storage.base import Collections, MetadataStorage

logger = logging.getLogger(__name__)

DEFAULT_SEED_FILE = Path(__file__).parent / "data" / "songs.yaml"


def load_seed_file(path: Path | str = DEFAULT_SEED_FILE) -> dict[str, Any]:
    """Read a seed file. Songs are validated like API input."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return {
        "account": data.get("account") or {},
        "songs": [SongFields.model_validate(item) for item in data.get("songs", [])],
    }


async def _seed_account(metadata: MetadataStorage, username: str, email: str) -> Account:
    doc = await metadata.find_one(Collections.ACCOUNTS, {"username": username})
    if doc:
        return Account.model_validate(doc)

    account = Account(
        username=username,
        email=email.lower(),
        password_hash=hash_password(secrets.token_urlsafe(32)),
    )
    await metadata.save(Collections.ACCOUNTS, account.id, account.to_document())
    logger.info(f"Created seed account {account.id}")
    return account


async def seed_catalog(
    metadata: MetadataStorage,
    path: Path | str = DEFAULT_SEED_FILE,
) -> int:
    """
    Insert the sample songs if the catalog is empty.

    Returns the number of songs added (0 when songs already exist).
    """
    if await metadata.count(Collections.SONGS) > 0:
        logger.info("Catalog already contains songs - skipping seed")
        return 0

    seed = load_seed_file(path)
    account = await _seed_account(
        metadata,
        seed["account"].get("username", "seedUser"),
        seed["account"].get("email", "seed@example.com"),
    )

    for fields in seed["songs"]:
        song = Song(**fields.model_dump(), created_by=account.id)
        await metadata.save(Collections.SONGS, song.id, song.to_document())
        logger.debug(f"Seeded song: {song.title}")

    logger.info(f"Seeded {len(seed['songs'])} songs")
    return len(seed["songs"])
