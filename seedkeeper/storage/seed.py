"""
Seed image provisioning.

The seed image is a ready-to-use database shipped in the asset bundle under
the database's file name. ensure_seed() copies it into place the first time
a database is needed; write_seed() is the unconditional copy the merge uses.

Copies stream through a fixed 8 KiB buffer, so memory use does not depend on
the database size. A failed copy is not rolled back: whatever was written
stays on disk.
"""

import logging
import shutil
from enum import StrEnum
from pathlib import Path

from seedkeeper.config.constants import COPY_BUFFER_SIZE
from seedkeeper.exceptions import AssetIOError
from seedkeeper.storage.assets import AssetBundle

logger = logging.getLogger(__name__)


class SeedOutcome(StrEnum):
    PRESENT = "present"  # file already existed, nothing written
    COPIED = "copied"
    FAILED = "failed"


def write_seed(assets: AssetBundle, database_name: str, path: str | Path) -> int:
    """
    Copy the seed image to path, overwriting any existing file.

    The seed asset is opened before the target, so a missing seed never
    creates or truncates the target.

    Args:
        assets: Asset bundle holding the seed image
        database_name: Seed asset key (the database file name)
        path: Destination file

    Returns:
        Number of bytes written

    Raises:
        AssetIOError: If the seed cannot be read or the target cannot be written
    """
    path = Path(path)
    with assets.open(database_name) as source:
        try:
            with path.open("wb") as target:
                shutil.copyfileobj(source, target, COPY_BUFFER_SIZE)
                target.flush()
        except OSError as e:
            raise AssetIOError(f"Failed to write seed image to {path}: {e}") from e

    return path.stat().st_size


def ensure_seed(assets: AssetBundle, database_name: str, path: str | Path) -> SeedOutcome:
    """
    Provision the live database from the seed image if it does not exist yet.

    Idempotent: an existing file at path is never touched. Failures are
    logged, not raised; the caller falls back to an empty database.

    Args:
        assets: Asset bundle holding the seed image
        database_name: Seed asset key
        path: Live database file

    Returns:
        SeedOutcome.PRESENT, COPIED or FAILED
    """
    path = Path(path)
    if path.exists():
        logger.debug(f"Database already present at {path}, skipping seed copy")
        return SeedOutcome.PRESENT

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        size = write_seed(assets, database_name, path)
    except (AssetIOError, OSError) as e:
        logger.error(f"Failed to provision seed database {database_name}: {e}")
        return SeedOutcome.FAILED

    logger.info(f"Provisioned {path} from seed image ({size} bytes)")
    return SeedOutcome.COPIED
