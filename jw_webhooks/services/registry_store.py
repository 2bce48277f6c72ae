"""Durable registry of the webhooks this service has created at JW.

One row per webhook ID holding the secret JW issued for it.  Reads go straight
to the database; inserts and deletes are serialised behind a single lock and
each runs in its own transaction, so no caller ever observes a half-written
record.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone

from sqlalchemy import Engine, delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from jw_webhooks.models.hook_record import HookRecord, HookRow

logger = logging.getLogger(__name__)


class RegistryError(Exception):
    """Raised when the registry table cannot be read or written."""


class DuplicateHookError(RegistryError):
    def __init__(self, hook_id: str):
        self.hook_id = hook_id
        super().__init__(f"Webhook {hook_id} is already recorded")


class RegistryStore:
    def __init__(self, engine: Engine):
        self._sessions = sessionmaker(engine, expire_on_commit=False)
        self._write_lock = threading.Lock()

    def list(self) -> set[HookRecord]:
        try:
            with self._sessions() as session:
                rows = session.scalars(select(HookRow)).all()
        except SQLAlchemyError as exc:
            raise RegistryError(f"Failed listing webhook records: {exc}") from exc
        return {row.to_record() for row in rows}

    def get(self, hook_id: str) -> HookRecord | None:
        try:
            with self._sessions() as session:
                row = session.get(HookRow, hook_id)
        except SQLAlchemyError as exc:
            raise RegistryError(f"Failed reading webhook {hook_id}: {exc}") from exc
        return row.to_record() if row is not None else None

    def insert(
        self,
        hook_id: str,
        secret: str,
        created: datetime | None = None,
    ) -> HookRecord:
        """Record a webhook created at JW.

        Raises:
            DuplicateHookError: A record for ``hook_id`` already exists.
            RegistryError: The write failed.
        """
        row = HookRow(
            id=hook_id,
            secret=secret,
            created=created or datetime.now(timezone.utc),
        )

        with self._write_lock:
            try:
                with self._sessions.begin() as session:
                    if session.get(HookRow, hook_id) is not None:
                        raise DuplicateHookError(hook_id)
                    session.add(row)
            except IntegrityError as exc:
                raise DuplicateHookError(hook_id) from exc
            except SQLAlchemyError as exc:
                raise RegistryError(f"Failed recording webhook {hook_id}: {exc}") from exc

        logger.info("Recorded webhook %s", hook_id)
        return row.to_record()

    def delete(self, hook_id: str) -> None:
        """Drop the record for ``hook_id``.  Missing records are ignored."""
        with self._write_lock:
            try:
                with self._sessions.begin() as session:
                    result = session.execute(delete(HookRow).where(HookRow.id == hook_id))
            except SQLAlchemyError as exc:
                raise RegistryError(f"Failed deleting webhook {hook_id}: {exc}") from exc

        if result.rowcount:
            logger.info("Deleted local record of webhook %s", hook_id)
