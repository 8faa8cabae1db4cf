"""Stable local participant identity."""

import logging
import random
from pathlib import Path

from solarshare.config import ID_FILE, USER_ID_RANGE

logger = logging.getLogger(__name__)


def load_or_assign_participant_id(
    path: Path = ID_FILE, id_range: tuple[int, int] = USER_ID_RANGE
) -> int:
    """Return the remembered participant id, or draw and remember a new one."""
    path = Path(path)
    if path.exists():
        try:
            return int(path.read_text().strip())
        except ValueError:
            logger.warning(f"Ignoring unreadable participant id in {path}")

    low, high = id_range
    participant_id = random.randint(low, high)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(str(participant_id))
    logger.info(f"Assigned participant id {participant_id}")
    return participant_id


def default_display_name(participant_id: int) -> str:
    return f"User {participant_id}"
