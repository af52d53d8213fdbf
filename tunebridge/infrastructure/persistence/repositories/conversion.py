"""SQLAlchemy repository for conversion records."""

from datetime import UTC, datetime
from typing import Any

import attrs
from attrs import define
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tunebridge.config import get_logger
from tunebridge.domain.entities import (
    ConversionError,
    ConversionRecord,
    ConversionStatus,
)
from tunebridge.domain.errors import DuplicateConversionError, NotFoundError
from tunebridge.infrastructure.persistence.database.db_connection import get_session
from tunebridge.infrastructure.persistence.database.db_models import DBConversion

logger = get_logger(__name__)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo on the way back
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@define(frozen=True, slots=True)
class ConversionMapper:
    """Bidirectional mapping between ConversionRecord and DBConversion."""

    @staticmethod
    def to_domain(db_model: DBConversion) -> ConversionRecord:
        return ConversionRecord(
            id=db_model.record_id,
            source_playlist_id=db_model.source_playlist_id,
            target_catalog=db_model.target_catalog,
            requested_by=db_model.requested_by,
            status=ConversionStatus(db_model.status),
            matched_count=db_model.matched_count,
            unmatched_count=db_model.unmatched_count,
            conversion_rate=db_model.conversion_rate,
            errors=[ConversionError(**error) for error in db_model.errors or []],
            warnings=list(db_model.warnings or []),
            target_playlist_id=db_model.target_playlist_id,
            created_at=_as_utc(db_model.created_at),
            completed_at=_as_utc(db_model.completed_at),
        )

    @staticmethod
    def to_values(record: ConversionRecord) -> dict[str, Any]:
        return {
            "record_id": record.id,
            "source_playlist_id": record.source_playlist_id,
            "target_catalog": record.target_catalog,
            "requested_by": record.requested_by,
            "status": str(record.status),
            "matched_count": record.matched_count,
            "unmatched_count": record.unmatched_count,
            "conversion_rate": record.conversion_rate,
            "errors": [attrs.asdict(error) for error in record.errors],
            "warnings": list(record.warnings),
            "target_playlist_id": record.target_playlist_id,
            "created_at": record.created_at,
            "completed_at": record.completed_at,
        }


class SqlAlchemyConversionRepository:
    """ConversionRecord persistence backed by SQLAlchemy.

    Each operation runs in its own short transaction. Claiming relies on the
    (source_playlist_id, target_catalog) unique constraint, so two processes
    racing for the same pair cannot both succeed. A failed row is replaced by a
    conditional UPDATE that only matches while the row is still failed.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory
        self.mapper = ConversionMapper()

    async def _find_row(
        self, session: AsyncSession, playlist_id: str, target_catalog: str
    ) -> DBConversion | None:
        stmt = select(DBConversion).where(
            DBConversion.source_playlist_id == playlist_id,
            DBConversion.target_catalog == str(target_catalog),
        )
        return (await session.execute(stmt)).scalar_one_or_none()

    async def find_conversion(
        self, playlist_id: str, target_catalog: str
    ) -> ConversionRecord | None:
        async with get_session(self.session_factory) as session:
            row = await self._find_row(session, playlist_id, target_catalog)
            return self.mapper.to_domain(row) if row else None

    async def claim(self, record: ConversionRecord) -> ConversionRecord:
        """Insert a pending record, superseding a failed one in place.

        Raises:
            DuplicateConversionError: A non-failed record already exists
        """
        try:
            async with get_session(self.session_factory) as session:
                row = await self._find_row(
                    session, record.source_playlist_id, record.target_catalog
                )
                if row is None:
                    session.add(DBConversion(**self.mapper.to_values(record)))
                elif row.status != ConversionStatus.FAILED:
                    raise DuplicateConversionError(
                        f"Playlist {record.source_playlist_id} already converted "
                        f"to {record.target_catalog}",
                        existing_id=row.record_id,
                    )
                else:
                    # Only the claim that still sees the failed row may replace it
                    result = await session.execute(
                        update(DBConversion)
                        .where(
                            DBConversion.id == row.id,
                            DBConversion.record_id == row.record_id,
                            DBConversion.status == str(ConversionStatus.FAILED),
                        )
                        .values(**self.mapper.to_values(record))
                        .execution_options(synchronize_session=False)
                    )
                    if result.rowcount != 1:
                        raise DuplicateConversionError(
                            f"Playlist {record.source_playlist_id} already converted "
                            f"to {record.target_catalog}"
                        )
                    logger.debug(
                        "Superseding failed conversion",
                        previous_id=row.record_id,
                        conversion_id=record.id,
                    )
        except IntegrityError as e:
            raise DuplicateConversionError(
                f"Playlist {record.source_playlist_id} already converted "
                f"to {record.target_catalog}"
            ) from e
        return record

    async def save_conversion(self, record: ConversionRecord) -> ConversionRecord:
        """Update the row owned by a claimed record.

        Raises:
            NotFoundError: The record was never claimed
        """
        async with get_session(self.session_factory) as session:
            stmt = select(DBConversion).where(DBConversion.record_id == record.id)
            row = (await session.execute(stmt)).scalar_one_or_none()
            if row is None:
                raise NotFoundError(f"Conversion {record.id} has not been claimed")
            for key, value in self.mapper.to_values(record).items():
                setattr(row, key, value)
        return record

    async def list_conversions(self, user_id: str) -> list[ConversionRecord]:
        async with get_session(self.session_factory) as session:
            stmt = (
                select(DBConversion)
                .where(DBConversion.requested_by == user_id)
                .order_by(DBConversion.created_at.desc(), DBConversion.id.desc())
            )
            rows = (await session.execute(stmt)).scalars().all()
            return [self.mapper.to_domain(row) for row in rows]
