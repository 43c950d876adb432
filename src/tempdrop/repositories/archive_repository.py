"""Persistence layer for archive records."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.orm import Session

from ..archives.archive_models import ArchiveRecord
from ..db.db_models import ArchiveModel
from ..exceptions import NotFoundError, handle_sqlalchemy_errors


class ArchiveRepository:
    """Store metadata about uploaded archives.

    Every method opens its own short session, so concurrent requests and the
    reclamation loop only ever contend on single-row statements.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def insert(self, record: ArchiveRecord) -> None:
        with handle_sqlalchemy_errors(entity="archive"), self._session_factory() as session:
            session.add(
                ArchiveModel(
                    id=record.id,
                    name=record.name,
                    upload=_to_storage(record.uploaded_at),
                    expiration=_to_storage(record.expires_at),
                    token=record.delete_token,
                )
            )
            session.commit()

    def find_by_token(self, token: str) -> ArchiveRecord:
        with handle_sqlalchemy_errors(entity="archive"), self._session_factory() as session:
            model = session.scalars(
                select(ArchiveModel).where(ArchiveModel.token == token)
            ).one_or_none()
            if model is None:
                raise NotFoundError("archive not found")
            return self._to_domain(model)

    def find_by_name(self, name: str) -> ArchiveRecord:
        with handle_sqlalchemy_errors(entity="archive"), self._session_factory() as session:
            model = session.scalars(
                select(ArchiveModel).where(ArchiveModel.name == name)
            ).one_or_none()
            if model is None:
                raise NotFoundError(f"archive '{name}' not found")
            return self._to_domain(model)

    def delete_by_token(self, token: str) -> None:
        with handle_sqlalchemy_errors(entity="archive"), self._session_factory() as session:
            result = session.execute(delete(ArchiveModel).where(ArchiveModel.token == token))
            session.commit()
        if result.rowcount == 0:
            raise NotFoundError("archive not found")

    def delete_by_id(self, archive_id: str) -> bool:
        """Remove a record by id. Returns ``False`` when it was already gone."""
        with handle_sqlalchemy_errors(entity="archive"), self._session_factory() as session:
            result = session.execute(delete(ArchiveModel).where(ArchiveModel.id == archive_id))
            session.commit()
        return result.rowcount > 0

    def list_expired(
        self,
        reference_time: datetime,
        *,
        limit: int | None = None,
        after: ArchiveRecord | None = None,
    ) -> list[ArchiveRecord]:
        """Snapshot of records with ``expiration <= reference_time``, oldest first.

        ``after`` is a keyset cursor: only records ordered strictly after it
        by ``(expiration, id)`` are returned.
        """
        query = (
            select(ArchiveModel)
            .where(ArchiveModel.expiration <= _to_storage(reference_time))
            .order_by(ArchiveModel.expiration, ArchiveModel.id)
        )
        if after is not None:
            cursor = _to_storage(after.expires_at)
            query = query.where(
                or_(
                    ArchiveModel.expiration > cursor,
                    and_(ArchiveModel.expiration == cursor, ArchiveModel.id > after.id),
                )
            )
        if limit is not None:
            query = query.limit(limit)
        with handle_sqlalchemy_errors(entity="archive"), self._session_factory() as session:
            return [self._to_domain(row) for row in session.scalars(query)]

    def count_expired(self, reference_time: datetime) -> int:
        query = (
            select(func.count())
            .select_from(ArchiveModel)
            .where(ArchiveModel.expiration <= _to_storage(reference_time))
        )
        with handle_sqlalchemy_errors(entity="archive"), self._session_factory() as session:
            return session.scalar(query) or 0

    @staticmethod
    def _to_domain(model: ArchiveModel) -> ArchiveRecord:
        return ArchiveRecord(
            id=model.id,
            name=model.name,
            uploaded_at=_from_storage(model.upload),
            expires_at=_from_storage(model.expiration),
            delete_token=model.token,
        )


def _to_storage(value: datetime) -> datetime:
    """Datetimes are persisted as naive UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _from_storage(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
