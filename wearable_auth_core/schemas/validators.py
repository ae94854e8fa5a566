"""
Input validators for the public operations.

They raise ValidationError with a human readable message naming the failing
field; nothing here touches a collaborator.
"""

import re
from datetime import datetime
from typing import Any

from ..exceptions import ErrorCode, ValidationError
from .auth_data_schema import UserAuthData

_OBJECT_ID = re.compile(r"[0-9a-fA-F]{24}")


def _is_iso_timestamp(value: str) -> bool:
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return False
    return True


class ObjectIdValidator:
    """Internal user ids are 24 character hexadecimal object ids."""

    @staticmethod
    def validate(value: Any, field: str = "user_id") -> None:
        if not isinstance(value, str) or not _OBJECT_ID.fullmatch(value):
            raise ValidationError(
                "Some ID provided does not have a valid format!",
                field=field,
                error_code=ErrorCode.INVALID_FORMAT,
                description="A 24-byte hex ID similar to this: 507f191e810c19729de860ea is expected.",
            )


class CreateUserAuthDataValidator:
    """Required shape of a credential submitted for linking."""

    @staticmethod
    def validate(data: UserAuthData) -> None:
        missing = []
        if not data.user_id:
            missing.append("user_id")
        if data.provider is None:
            missing.append("provider")
        elif not data.provider.access_token:
            missing.append("provider.access_token")

        if missing:
            raise ValidationError(
                "Required fields were not provided...",
                field=missing[0],
                error_code=ErrorCode.MISSING_REQUIRED,
                description=f"Auth data validation: {', '.join(missing)} required!",
            )

        # last_sync becomes the start of the next sync window
        last_sync = data.provider.last_sync
        if last_sync is not None and not _is_iso_timestamp(last_sync):
            raise ValidationError(
                "Some date provided does not have a valid format!",
                field="provider.last_sync",
                error_code=ErrorCode.INVALID_FORMAT,
                description="An ISO 8601 date similar to this: 2026-10-01T08:00:00Z is expected.",
            )
