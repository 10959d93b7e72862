"""
UUID column that stores as string(36), so the same model works on SQLite and PostgreSQL.
"""
import uuid

from sqlalchemy import String, TypeDecorator


class UuidType(TypeDecorator):
    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)
