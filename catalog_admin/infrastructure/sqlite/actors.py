from __future__ import annotations

import logging
from typing import Optional

from ...domain.identity import ActorIdentity
from ..metrics import metrics
from .database import SQLiteDatabase

logger = logging.getLogger(__name__)


class SQLiteActorStore:
    """Remembers the signed-in actor between runs. Holds at most one row."""

    def __init__(self, db: SQLiteDatabase):
        self._db = db

    @metrics.wrap_async("db:actor.current", source="database")
    async def current(self) -> Optional[ActorIdentity]:
        async with self._db.connect() as conn:
            cur = await conn.execute("SELECT user_id, email, name FROM actor_session WHERE slot=1")
            row = await cur.fetchone()
        if not row:
            return None
        return ActorIdentity(id=row["user_id"], email=row["email"] or "", name=row["name"] or "")

    @metrics.wrap_async("db:actor.sign_in", source="database")
    async def sign_in(self, actor: ActorIdentity) -> None:
        async with self._db.connect() as conn:
            await conn.execute(
                """
                INSERT INTO actor_session(slot, user_id, email, name, signed_in_at)
                VALUES(1, ?, ?, ?, datetime('now'))
                ON CONFLICT(slot) DO UPDATE SET
                  user_id=excluded.user_id,
                  email=excluded.email,
                  name=excluded.name,
                  signed_in_at=excluded.signed_in_at
                """,
                (actor.id, actor.email, actor.name),
            )
            await conn.commit()
        logger.info("Signed in as %s", actor.email or actor.id)

    @metrics.wrap_async("db:actor.sign_out", source="database")
    async def sign_out(self) -> bool:
        async with self._db.connect() as conn:
            cur = await conn.execute("DELETE FROM actor_session WHERE slot=1")
            await conn.commit()
            removed = cur.rowcount > 0
        if removed:
            logger.info("Signed out")
        return removed
