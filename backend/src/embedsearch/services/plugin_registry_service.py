"""
Typed read/write access to the plugin registry.

Records are keyed by ``(type, uid)``; the pair is unique both at the
database level and in ``create_record``.
"""

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import PluginAlreadyExistsError, PluginNotFoundError
from ..core.logging import get_logger
from ..models.plugin_record import PluginRecord
from ..schemas.plugin import PluginRecordCreate, PluginRecordUpdate
from .corpus import serialize_corpus

logger = get_logger(__name__)


class PluginRegistryService:
    """Persistence helpers for the PluginRecord table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_record(self, plugin_type: str, uid: str) -> PluginRecord | None:
        stmt = select(PluginRecord).where(PluginRecord.type == plugin_type, PluginRecord.uid == uid)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_records(self, plugin_type: str | None = None) -> list[PluginRecord]:
        stmt = select(PluginRecord).order_by(PluginRecord.created_at.desc())
        if plugin_type is not None:
            stmt = stmt.where(PluginRecord.type == plugin_type)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_records(self, plugin_type: str) -> int:
        stmt = select(func.count()).select_from(PluginRecord).where(PluginRecord.type == plugin_type)
        return (await self.db.execute(stmt)).scalar_one()

    async def create_record(self, data: PluginRecordCreate) -> PluginRecord:
        if await self.get_record(data.type, data.uid) is not None:
            raise PluginAlreadyExistsError(data.type, data.uid)

        record = PluginRecord(
            type=data.type,
            uid=data.uid,
            settings=dict(data.settings),
            context=serialize_corpus(data.context),
        )
        self.db.add(record)
        try:
            await self.db.commit()
        except IntegrityError as e:
            # Lost a race against a concurrent insert of the same pair
            await self.db.rollback()
            raise PluginAlreadyExistsError(data.type, data.uid) from e
        await self.db.refresh(record)

        logger.info("Plugin record created", extra={"plugin_type": data.type, "uid": data.uid})
        return record

    async def update_record(self, plugin_type: str, uid: str, data: PluginRecordUpdate) -> PluginRecord:
        record = await self.get_record(plugin_type, uid)
        if record is None:
            raise PluginNotFoundError(uid)

        if data.settings is not None:
            # Replace the entire map to avoid stale keys hanging around
            record.settings = dict(data.settings)
        if data.context is not None:
            record.context = serialize_corpus(data.context)

        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def delete_record(self, plugin_type: str, uid: str) -> bool:
        result = await self.db.execute(
            delete(PluginRecord).where(PluginRecord.type == plugin_type, PluginRecord.uid == uid)
        )
        await self.db.commit()
        return bool(result.rowcount)
