"""
Credential Store: persistence of UserAuthData records.

Records are keyed by the internal ``user_id``; at most one exists per user.
Concurrent upserts for the same user are serialized with a striped lock and
the unique index on ``user_id`` turns a racing insert into an update.
"""

import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_config
from ..constants import TokenStatus
from ..db.db_auth_data_models import UserAuthDataRecord
from ..db.db_config import DatabaseManager
from ..exceptions import ErrorCode, RepositoryError, ValidationError, not_found
from ..schemas.auth_data_schema import ProviderAuthData, UserAuthData
from ..utils.encryption_utils import decrypt_token, encrypt_token
from ..utils.logger import get_logger

# Filter keys accepted by find_one, mapped to model columns
_FILTER_COLUMNS = {
    "id": UserAuthDataRecord.id,
    "user_id": UserAuthDataRecord.user_id,
    "provider.user_id": UserAuthDataRecord.provider_user_id,
}

# Fixed number of write locks, users are spread over them by hash
LOCK_STRIPES = 64


class AuthDataRepository:
    """Repository for linked provider credentials."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        directory: Any,
        encryption_key: Optional[str] = None,
    ):
        """
        Initialize the repository.

        Args:
            db_manager: Database manager providing sessions
            directory: User directory client answering ``exists(user_id)``
            encryption_key: Secret mixed into token encryption keys
                (default: config.security.encryption_key)
        """
        self.db_manager = db_manager
        self.directory = directory
        self.encryption_key = (
            encryption_key if encryption_key is not None else get_config().security.encryption_key
        )
        self.logger = get_logger()
        self._locks = [threading.Lock() for _ in range(LOCK_STRIPES)]

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self.db_manager.get_session()
        try:
            yield session
            session.commit()
        except IntegrityError:
            session.rollback()
            raise
        except SQLAlchemyError as e:
            session.rollback()
            raise RepositoryError(
                f"Database error: {str(e)}", error_code=ErrorCode.DATABASE_ERROR, cause=e
            )
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _lock_for(self, user_id: str) -> threading.Lock:
        # Users sharing a stripe also share a lock; callers never hold two at once
        return self._locks[hash(user_id) % LOCK_STRIPES]

    # ==================== MAPPING ====================

    def _to_schema(self, session: Session, row: UserAuthDataRecord) -> UserAuthData:
        provider_columns = (
            row.provider_user_id,
            row.provider_access_token,
            row.provider_refresh_token,
            row.provider_expires_in,
            row.provider_scope,
            row.provider_token_type,
            row.provider_status,
            row.provider_last_sync,
        )
        provider = None
        if any(value is not None for value in provider_columns):
            provider = ProviderAuthData(
                user_id=row.provider_user_id,
                access_token=decrypt_token(
                    session, row.provider_access_token, row.user_id, "access", self.encryption_key
                ),
                refresh_token=decrypt_token(
                    session, row.provider_refresh_token, row.user_id, "refresh", self.encryption_key
                ),
                expires_in=row.provider_expires_in,
                scope=row.provider_scope,
                token_type=row.provider_token_type,
                status=TokenStatus(row.provider_status) if row.provider_status else None,
                last_sync=row.provider_last_sync,
            )
        return UserAuthData(
            id=row.id,
            user_id=row.user_id,
            provider=provider,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def _apply(self, session: Session, row: UserAuthDataRecord, record: UserAuthData) -> None:
        provider = record.provider or ProviderAuthData()
        row.user_id = record.user_id
        row.provider_user_id = provider.user_id
        row.provider_access_token = encrypt_token(
            session, provider.access_token, record.user_id, "access", self.encryption_key
        )
        row.provider_refresh_token = encrypt_token(
            session, provider.refresh_token, record.user_id, "refresh", self.encryption_key
        )
        row.provider_expires_in = provider.expires_in
        row.provider_scope = provider.scope
        row.provider_token_type = provider.token_type
        row.provider_status = provider.status.value if provider.status else None
        row.provider_last_sync = provider.last_sync

    # ==================== QUERIES ====================

    def check_user_exists(self, user_id: str) -> bool:
        """Ask the user directory whether the internal user is registered."""
        return self.directory.exists(user_id)

    def find_one(self, filters: Dict[str, Any]) -> Optional[UserAuthData]:
        """
        Find a single record by equality filters.

        Args:
            filters: Mapping of ``id``, ``user_id`` or ``provider.user_id`` to values

        Returns:
            The matching record or None
        """
        unsupported = [key for key in filters if key not in _FILTER_COLUMNS]
        if unsupported:
            raise ValidationError(
                f"Unsupported filter keys: {', '.join(sorted(unsupported))}",
                field="filters",
                error_code=ErrorCode.INVALID_FORMAT,
            )

        with self._session() as session:
            query = session.query(UserAuthDataRecord)
            for key, value in filters.items():
                query = query.filter(_FILTER_COLUMNS[key] == value)
            row = query.first()
            return self._to_schema(session, row) if row else None

    def find_by_user_id(self, user_id: str) -> Optional[UserAuthData]:
        return self.find_one({"user_id": user_id})

    def find_by_provider_user_id(self, provider_user_id: str) -> Optional[UserAuthData]:
        return self.find_one({"provider.user_id": provider_user_id})

    # ==================== WRITES ====================

    def create(self, record: UserAuthData) -> UserAuthData:
        """
        Insert a new record.

        Raises:
            RepositoryError: DUPLICATE if a record already exists for the user
        """
        try:
            with self._session() as session:
                row = UserAuthDataRecord()
                if record.id:
                    row.id = record.id
                self._apply(session, row, record)
                session.add(row)
                session.flush()
                result = self._to_schema(session, row)
        except IntegrityError as e:
            raise RepositoryError(
                f"Auth data already exists for user {record.user_id}",
                error_code=ErrorCode.DUPLICATE,
                status_code=409,
                cause=e,
                user_id=record.user_id,
            )

        self.logger.info(
            "Auth data created", extra={"record_id": result.id, "user_id": result.user_id}
        )
        return result

    def update(self, record: UserAuthData) -> UserAuthData:
        """
        Overwrite the record identified by ``record.id``.

        Raises:
            RepositoryError: NOT_FOUND if no record has that identity
        """
        with self._session() as session:
            row = session.get(UserAuthDataRecord, record.id) if record.id else None
            if row is None:
                raise not_found("UserAuthData", id=record.id)
            self._apply(session, row, record)
            session.flush()
            result = self._to_schema(session, row)

        self.logger.info(
            "Auth data updated", extra={"record_id": result.id, "user_id": result.user_id}
        )
        return result

    @staticmethod
    def _merge_into(existing: UserAuthData, record: UserAuthData) -> UserAuthData:
        """Take the existing identity; keep last_sync unless the new record carries one."""
        merged = record.model_copy(update={"id": existing.id})
        if (
            merged.provider is not None
            and not merged.provider.last_sync
            and existing.provider is not None
            and existing.provider.last_sync
        ):
            merged = merged.model_copy(
                update={
                    "provider": merged.provider.model_copy(
                        update={"last_sync": existing.provider.last_sync}
                    )
                }
            )
        return merged

    def upsert(self, record: UserAuthData) -> UserAuthData:
        """
        Update the record for ``record.user_id`` if one exists, else insert it.

        The existing record's identity is preserved on update, and so is its
        ``last_sync`` when the incoming record has none.
        """
        with self._lock_for(record.user_id):
            existing = self.find_by_user_id(record.user_id)
            if existing is not None:
                return self.update(self._merge_into(existing, record))

            try:
                return self.create(record.model_copy(update={"id": None}))
            except RepositoryError as e:
                if e.error_code != ErrorCode.DUPLICATE:
                    raise
                # Another writer inserted first (e.g. a second process)
                existing = self.find_by_user_id(record.user_id)
                if existing is None:
                    raise
                return self.update(self._merge_into(existing, record))

    def update_last_sync(self, user_id: str, last_sync: str) -> Optional[UserAuthData]:
        """Advance ``provider.last_sync``. Returns None if the user has no record."""
        with self._lock_for(user_id):
            with self._session() as session:
                row = (
                    session.query(UserAuthDataRecord)
                    .filter(UserAuthDataRecord.user_id == user_id)
                    .first()
                )
                if row is None:
                    return None
                row.provider_last_sync = last_sync
                session.flush()
                return self._to_schema(session, row)
