"""Export store — transactional CRUD and row locking for export records.

Every operation runs in its own short transaction unless the store is bound
to a session by :meth:`ExportStore.run_in_transaction`, in which case all
calls share that session and its row locks until the transaction ends.
"""

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TypeVar

from loguru import logger
from sqlalchemy import ColumnElement, delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dataset_export.core.errors import ExportNotFoundError, ExportStoreError
from dataset_export.models.export import Export, ExportStatus, ExportType

T = TypeVar("T")


@dataclass
class CreateExportArguments:
    """Column values for a new export record."""

    requested_by_user_id: int
    request_time: int
    type: ExportType
    filter_options: bytes
    status: ExportStatus = ExportStatus.REQUESTED
    expire_time: int = 0
    exported_file_filename: str = ""


def _not_expired(now: int) -> ColumnElement[bool]:
    return or_(Export.expire_time == 0, Export.expire_time >= now)


class ExportStore:
    """Data access for the export ledger table.

    Args:
        session_factory: Factory used to open sessions for standalone calls
            and for new transactions.
        session: Session this store is bound to. Set only on the scoped
            store handed to a :meth:`run_in_transaction` callback.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        session: AsyncSession | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._session = session

    @asynccontextmanager
    async def _session_scope(self) -> AsyncIterator[AsyncSession]:
        if self._session is not None:
            yield self._session
            return
        async with self._session_factory() as session, session.begin():
            yield session

    async def create(self, args: CreateExportArguments) -> int:
        """Insert a new export record.

        Args:
            args: Column values of the new record.

        Returns:
            The store-assigned export id.
        """
        export = Export(
            requested_by_user_id=args.requested_by_user_id,
            request_time=args.request_time,
            type=int(args.type),
            expire_time=args.expire_time,
            filter_options=args.filter_options,
            status=int(args.status),
            exported_file_filename=args.exported_file_filename,
        )
        try:
            async with self._session_scope() as session:
                session.add(export)
                await session.flush()
                return export.id
        except SQLAlchemyError as e:
            logger.exception("Failed to create export for user {}", args.requested_by_user_id)
            raise ExportStoreError("failed to create export") from e

    async def get(self, export_id: int) -> Export | None:
        """Return the export with the given id, or None."""
        try:
            async with self._session_scope() as session:
                result = await session.execute(select(Export).where(Export.id == export_id))
                export = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.exception("Failed to get export {}", export_id)
            raise ExportStoreError(f"failed to get export {export_id}") from e
        if export is None:
            logger.debug("No export with export_id {} found", export_id)
        return export

    async def get_with_lock(self, export_id: int) -> Export | None:
        """Return the export with the given id under an exclusive row lock.

        The lock is held until the enclosing transaction ends, so this is
        only meaningful on a store scoped by :meth:`run_in_transaction`.
        """
        try:
            async with self._session_scope() as session:
                result = await session.execute(
                    select(Export).where(Export.id == export_id).with_for_update().execution_options(
                        populate_existing=True
                    )
                )
                export = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.exception("Failed to lock export {}", export_id)
            raise ExportStoreError(f"failed to get export {export_id}") from e
        if export is None:
            logger.debug("No export with export_id {} found", export_id)
        return export

    async def update(self, export: Export) -> None:
        """Persist the mutable fields of an export."""
        try:
            async with self._session_scope() as session:
                await session.merge(export)
                await session.flush()
        except SQLAlchemyError as e:
            logger.exception("Failed to update export {}", export.id)
            raise ExportStoreError(f"failed to update export {export.id}") from e

    async def delete(self, export_id: int) -> None:
        """Delete an export record.

        Raises:
            ExportNotFoundError: If no record has the given id.
        """
        try:
            async with self._session_scope() as session:
                result = await session.execute(delete(Export).where(Export.id == export_id))
                deleted = result.rowcount
        except SQLAlchemyError as e:
            logger.exception("Failed to delete export {}", export_id)
            raise ExportStoreError(f"failed to delete export {export_id}") from e
        if deleted == 0:
            logger.debug("No export with export_id {} found", export_id)
            raise ExportNotFoundError(export_id)

    async def count(self, requested_by_user_id: int, now: int) -> int:
        """Count the unexpired exports of a user."""
        query = (
            select(func.count(Export.id))
            .where(Export.requested_by_user_id == requested_by_user_id)
            .where(_not_expired(now))
        )
        try:
            async with self._session_scope() as session:
                return (await session.execute(query)).scalar_one()
        except SQLAlchemyError as e:
            logger.exception("Failed to count exports of user {}", requested_by_user_id)
            raise ExportStoreError("failed to get export count") from e

    async def list_exports(self, requested_by_user_id: int, now: int, offset: int, limit: int) -> list[Export]:
        """List the unexpired exports of a user, newest request first."""
        query = (
            select(Export)
            .where(Export.requested_by_user_id == requested_by_user_id)
            .where(_not_expired(now))
            .order_by(Export.request_time.desc(), Export.id.desc())
            .offset(offset)
            .limit(limit)
        )
        try:
            async with self._session_scope() as session:
                result = await session.execute(query)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.exception("Failed to list exports of user {}", requested_by_user_id)
            raise ExportStoreError("failed to get export list") from e

    async def list_requested_before(self, request_time: int, limit: int, *, after_id: int = 0) -> list[Export]:
        """List exports still REQUESTED that were created before ``request_time``, by ascending id."""
        query = (
            select(Export)
            .where(Export.status == ExportStatus.REQUESTED)
            .where(Export.request_time < request_time)
            .where(Export.id > after_id)
            .order_by(Export.id)
            .limit(limit)
        )
        try:
            async with self._session_scope() as session:
                result = await session.execute(query)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.exception("Failed to list requested exports")
            raise ExportStoreError("failed to get requested export list") from e

    async def delete_expired(self, now: int) -> int:
        """Delete every export whose non-zero expire time is before ``now``.

        Returns:
            Number of deleted records.
        """
        try:
            async with self._session_scope() as session:
                result = await session.execute(
                    delete(Export).where(Export.expire_time != 0).where(Export.expire_time < now)
                )
                return result.rowcount
        except SQLAlchemyError as e:
            logger.exception("Failed to delete exports expired before {}", now)
            raise ExportStoreError("failed to delete expired exports") from e

    async def run_in_transaction(self, fn: Callable[["ExportStore"], Awaitable[T]]) -> T:
        """Run ``fn`` with a store bound to a single transaction.

        Commits when ``fn`` returns and rolls back when it raises.

        Args:
            fn: Coroutine function receiving the transaction-scoped store.

        Returns:
            Whatever ``fn`` returns.
        """
        if self._session is not None:
            return await fn(self)
        try:
            async with self._session_factory() as session, session.begin():
                return await fn(ExportStore(self._session_factory, session=session))
        except SQLAlchemyError as e:
            logger.exception("Export transaction failed")
            raise ExportStoreError("export transaction failed") from e
