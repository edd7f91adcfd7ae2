"""SQLAlchemy mixin for history tables.

AutoHistoryMixin declares the columns of a history record. The bundled
AutoHistory model combines it with autohistory's Base; hosts that want the
table in their own metadata declare their own model:

    class History(AutoHistoryMixin, MyBase):
        __tablename__ = "history"
"""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from autohistory.shared.utils.datetime import utc_now
from autohistory.shared.utils.generators import generate_cuid

# Columns a history model must expose to receive HistoryRecord fields.
HISTORY_RECORD_FIELDS = ("entity_id", "entity_type", "kind", "diff", "timestamp")


class AutoHistoryMixin:
    """Mixin for history rows: CUID id, entity identity, kind, diff and timestamp."""

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String, primary_key=True, default=generate_cuid)

    @declared_attr
    def entity_id(cls) -> Mapped[str]:
        return mapped_column(String(256), nullable=False, index=True)

    @declared_attr
    def entity_type(cls) -> Mapped[str]:
        return mapped_column(String(128), nullable=False, index=True)

    @declared_attr
    def kind(cls) -> Mapped[str]:
        return mapped_column(String(16), nullable=False)

    @declared_attr
    def diff(cls) -> Mapped[str | None]:
        return mapped_column(Text, nullable=True)

    @declared_attr
    def timestamp(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True), default=utc_now, nullable=False, index=True
        )
