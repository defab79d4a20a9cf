"""Persistent storage for discovered foreign-id mappings."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db_models import TitleMappingRecord
from ..models import MappingSource, TitleMapping

logger = logging.getLogger(__name__)


class MappingStore:
    """Read and upsert ``title_mappings`` rows.

    Reads and writes are not transactional with respect to each other: two
    concurrent discoveries for the same id both write and the last one wins.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_mapping(self, foreign_id: str) -> TitleMapping | None:
        try:
            async with self._session_factory() as session:
                record = await session.get(TitleMappingRecord, foreign_id)
        except SQLAlchemyError:
            logger.exception("Failed to read mapping for %s", foreign_id)
            return None
        if record is None:
            return None
        return _to_mapping(record)

    async def put_mapping(
        self,
        foreign_id: str,
        imdb_id: str,
        source: MappingSource,
        confidence: int = 0,
    ) -> bool:
        """Insert or refresh a mapping; return whether it was written."""

        now = datetime.utcnow()
        try:
            async with self._session_factory() as session:
                record = await session.get(TitleMappingRecord, foreign_id)
                if record is None:
                    session.add(
                        TitleMappingRecord(
                            foreign_id=foreign_id,
                            imdb_id=imdb_id,
                            source=source,
                            confidence=confidence,
                            created_at=now,
                            last_verified=now,
                        )
                    )
                else:
                    record.imdb_id = imdb_id
                    record.source = source
                    record.confidence = confidence
                    record.last_verified = now
                await session.commit()
        except SQLAlchemyError:
            logger.exception("Failed to persist mapping %s -> %s", foreign_id, imdb_id)
            return False
        return True

    async def list_mappings(self, *, limit: int = 100) -> list[TitleMapping]:
        """Return the most recently verified mappings first."""

        async with self._session_factory() as session:
            result = await session.execute(
                select(TitleMappingRecord)
                .order_by(TitleMappingRecord.last_verified.desc())
                .limit(limit)
            )
            records = result.scalars().all()
        return [_to_mapping(record) for record in records]


def _to_mapping(record: TitleMappingRecord) -> TitleMapping:
    return TitleMapping(
        foreign_id=record.foreign_id,
        imdb_id=record.imdb_id,
        source=record.source,  # type: ignore[arg-type]
        confidence=record.confidence or 0,
        created_at=record.created_at,
        last_verified=record.last_verified or record.created_at,
    )
