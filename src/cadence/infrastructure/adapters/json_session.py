"""
JSON file session store.

Keeps the review sitting position in a single small file so a sitting
survives process restarts.
"""

import logging
import os
from pathlib import Path

from pydantic import ValidationError

from cadence.domain.errors import SessionCorruptError
from cadence.domain.models import SavedSession
from cadence.domain.ports import SessionStore

logger = logging.getLogger(__name__)


class JsonFileSessionStore(SessionStore):
    """Stores the session blob as JSON at `path`; writes are atomic."""

    def __init__(self, path: Path):
        self.path = Path(path)

    async def get(self) -> SavedSession | None:
        if not self.path.exists():
            return None
        raw = self.path.read_text(encoding="utf-8")
        try:
            return SavedSession.model_validate_json(raw)
        except ValidationError as e:
            raise SessionCorruptError(f"Invalid session file {self.path}: {e}") from e

    async def set(self, session: SavedSession) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(session.model_dump_json(), encoding="utf-8")
        os.replace(tmp, self.path)
        logger.debug(f"Saved session ({len(session.item_ids)} items, cursor={session.cursor})")

    async def clear(self) -> None:
        self.path.unlink(missing_ok=True)
