"""Column types shared by all models"""
import uuid

from sqlalchemy import TypeDecorator, String


def generate_uuid() -> str:
    """New primary key value; also used for rows built outside the ORM (bulk upserts)"""
    return str(uuid.uuid4())


class GUID(TypeDecorator):
    """
    UUID stored as VARCHAR(36) on every backend.

    Values round-trip as plain strings, so ids coming from URLs, JWT claims
    and ORM rows compare equal without conversion.
    """
    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else str(value)
