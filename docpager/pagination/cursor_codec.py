"""
Cursor encoding and decoding for pagination.

A cursor is the value of the sort field of a document, turned into an opaque
string. Temporal values encode as integer milliseconds since the Unix epoch;
every other type passes through as its string form. When a secret key is
configured the encoded string is additionally signed with itsdangerous, so
clients cannot forge positions.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional, Union

from itsdangerous import BadSignature, URLSafeSerializer

from ..errors import InvalidCursorError, ReservedFieldError
from ..logging_config import get_logger

logger = get_logger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)
_MILLIS_PATTERN = re.compile(r"-?[0-9]+")

CURSOR_SALT = "docpager.cursor"

# Names that could remap object internals or inject query operators
RESERVED_FIELD_TOKENS = ("__proto__",)
RESERVED_FIELD_NAMES = frozenset({"constructor", "prototype"})


class CursorType(str, Enum):
    """Declared types the codec knows by name. Any other type passes through."""

    DATE = "Date"
    STRING = "String"


def normalize_cursor_type(
    cursor_type: Union[CursorType, str],
) -> Union[CursorType, str]:
    """Map a declared type to its CursorType member, or keep it as a plain string."""
    try:
        return CursorType(cursor_type)
    except ValueError:
        return str(cursor_type)


def _type_name(cursor_type: Union[CursorType, str]) -> str:
    return cursor_type.value if isinstance(cursor_type, CursorType) else cursor_type


def validate_field_name(field: Any) -> str:
    """
    Reject field names that are unsafe to use as document keys.

    Args:
        field: Candidate field name

    Returns:
        The field name, unchanged

    Raises:
        ReservedFieldError: If the name is empty, starts with ``$``, contains a
            NUL byte, contains a reserved token or is a reserved name
    """
    if not isinstance(field, str) or not field:
        raise ReservedFieldError(str(field), details={"reason": "empty field name"})
    if field.startswith("$") or "\x00" in field:
        raise ReservedFieldError(field, details={"reason": "operator-like name"})
    if field in RESERVED_FIELD_NAMES or any(
        token in field for token in RESERVED_FIELD_TOKENS
    ):
        raise ReservedFieldError(field, details={"reason": "reserved word"})
    return field


@dataclass
class Cursor:
    """Cursor configuration: which field is paginated, its type and position."""

    field: str = "createdAt"
    type: Union[CursorType, str] = CursorType.DATE
    value: Optional[str] = None


def to_millis(value: Union[datetime, date, str]) -> int:
    """Convert a temporal value to milliseconds since the epoch."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    elif not isinstance(value, datetime) and isinstance(value, date):
        value = datetime(value.year, value.month, value.day)
    if not isinstance(value, datetime):
        raise TypeError(f"not a temporal value: {type(value).__name__}")
    if value.tzinfo is None:
        # Document stores hand back naive UTC datetimes
        value = value.replace(tzinfo=timezone.utc)
    return (value - EPOCH) // _MILLISECOND


def from_millis(millis: int, tz_aware: bool = False) -> datetime:
    """
    Convert milliseconds since the epoch to a UTC datetime.

    The result is naive unless ``tz_aware`` is set, like the values a
    pymongo client returns with its default ``tz_aware=False``.
    """
    value = EPOCH + timedelta(milliseconds=millis)
    return value if tz_aware else value.replace(tzinfo=None)


class CursorCodec:
    """
    Encode and decode pagination cursors.

    Usage:
        codec = CursorCodec()
        cursor = codec.encode(document["createdAt"], CursorType.DATE)
        value = codec.decode(cursor, CursorType.DATE)  # naive UTC datetime
    """

    def __init__(self, secret_key: Optional[str] = None, tz_aware: bool = False):
        """
        Initialize the codec.

        Args:
            secret_key: When given, cursors are signed and verified with it
            tz_aware: Decode temporal cursors to aware instead of naive UTC datetimes
        """
        self.serializer = (
            URLSafeSerializer(secret_key, salt=CURSOR_SALT) if secret_key else None
        )
        self.tz_aware = tz_aware

    @property
    def signed(self) -> bool:
        return self.serializer is not None

    def encode(self, value: Any, cursor_type: Union[CursorType, str]) -> str:
        """
        Encode a field value into an opaque cursor string.

        Args:
            value: Value of the cursor field in a document
            cursor_type: Declared type of the cursor field

        Returns:
            Cursor string

        Raises:
            InvalidCursorError: If a temporal cursor is asked for a non-temporal value
        """
        cursor_type = normalize_cursor_type(cursor_type)
        if cursor_type is CursorType.DATE:
            try:
                encoded = str(to_millis(value))
            except (TypeError, ValueError) as e:
                raise InvalidCursorError(value, _type_name(cursor_type), str(e)) from e
        else:
            encoded = str(value)

        if self.serializer is not None:
            return self.serializer.dumps(encoded)
        return encoded

    def decode(self, cursor: str, cursor_type: Union[CursorType, str]) -> Any:
        """
        Decode a cursor string back to a field value.

        Args:
            cursor: Opaque cursor string
            cursor_type: Declared type of the cursor field

        Returns:
            A UTC datetime for temporal cursors, the raw string otherwise

        Raises:
            InvalidCursorError: If the cursor is malformed or its signature is bad
        """
        cursor_type = normalize_cursor_type(cursor_type)
        raw = self._unsign(cursor, cursor_type)

        if cursor_type is not CursorType.DATE:
            return raw

        if not isinstance(raw, str) or not _MILLIS_PATTERN.fullmatch(raw):
            raise InvalidCursorError(cursor, _type_name(cursor_type), "not a timestamp")
        try:
            return from_millis(int(raw), self.tz_aware)
        except OverflowError as e:
            raise InvalidCursorError(
                cursor, _type_name(cursor_type), "timestamp out of range"
            ) from e

    def _unsign(self, cursor: str, cursor_type: Union[CursorType, str]) -> Any:
        if self.serializer is None:
            return cursor
        try:
            return self.serializer.loads(cursor)
        except BadSignature as e:
            logger.debug("Rejected cursor with bad signature", cursor=cursor)
            raise InvalidCursorError(
                cursor, _type_name(cursor_type), "bad signature"
            ) from e
