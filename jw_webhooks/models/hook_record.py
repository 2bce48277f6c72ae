"""Local record of a webhook created at JW.

A record is written once, when JW confirms the webhook and hands back its
secret, and deleted wholesale when the subscription is dropped.  It is never
updated in place.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from jw_webhooks.core.database import Base


@dataclass(frozen=True)
class HookRecord:
    id: str
    secret: str
    created: datetime

    def __repr__(self) -> str:
        # Keep the secret out of logs and tracebacks.
        return f"<HookRecord {self.id} created={self.created.isoformat()}>"


class HookRow(Base):
    __tablename__ = "jw_webhooks"

    # Webhook ID assigned by JW
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    secret: Mapped[str] = mapped_column(Text, nullable=False)
    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def to_record(self) -> HookRecord:
        created = self.created
        # SQLite hands back naive datetimes; everything stored is UTC.
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return HookRecord(id=self.id, secret=self.secret, created=created)

    def __repr__(self) -> str:
        return f"<HookRow {self.id}>"
