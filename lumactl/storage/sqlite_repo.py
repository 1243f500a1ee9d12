from __future__ import annotations
import logging
from typing import List

import aiosqlite

from ..domain.errors import PersistenceError
from ..domain.models import Sample

logger = logging.getLogger(__name__)


class SQLiteSampleRepository:
    """Learned samples for one output, stored as an ordered flat list."""

    def __init__(self, path: str, output: str) -> None:
        self._path = path
        self._output = output

    async def init(self) -> None:
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS samples (
                    output TEXT NOT NULL,
                    position INTEGER NOT NULL,
                    lux INTEGER NOT NULL,
                    luminance INTEGER,
                    brightness INTEGER NOT NULL,
                    PRIMARY KEY (output, position)
                )
                """
            )
            await db.commit()

    async def load(self) -> List[Sample]:
        """Stored samples, or an empty list when nothing usable is stored."""
        try:
            async with aiosqlite.connect(self._path) as db:
                cur = await db.execute(
                    """
                    SELECT lux,luminance,brightness
                    FROM samples
                    WHERE output = ?
                    ORDER BY position
                    """,
                    (self._output,),
                )
                rows = await cur.fetchall()
        except Exception as e:
            logger.warning("Failed to load learned samples from %s, starting empty: %s", self._path, e)
            return []

        out: list[Sample] = []
        for lux, luminance, brightness in rows:
            out.append(
                Sample(
                    lux=int(lux),
                    luminance=None if luminance is None else int(luminance),
                    brightness=int(brightness),
                )
            )
        return out

    async def save(self, samples: List[Sample]) -> None:
        try:
            async with aiosqlite.connect(self._path) as db:
                await db.execute("DELETE FROM samples WHERE output = ?", (self._output,))
                await db.executemany(
                    "INSERT INTO samples(output,position,lux,luminance,brightness) VALUES (?,?,?,?,?)",
                    [
                        (self._output, i, s.lux, s.luminance, s.brightness)
                        for i, s in enumerate(samples)
                    ],
                )
                await db.commit()
        except Exception as e:
            raise PersistenceError(f"Unable to save {len(samples)} samples to {self._path}: {e}") from e
        logger.debug("Saved %d samples for output %s", len(samples), self._output)
