"""Declarative base shared by every records table"""

from sqlalchemy.orm import declarative_base
from sqlalchemy import TypeDecorator, JSON
from sqlalchemy.dialects.postgresql import JSONB


class PortableJSONB(TypeDecorator):
    """JSON column stored as JSONB on PostgreSQL and plain JSON elsewhere.

    Holds structured drafts such as the staged custom metadata list of a
    working copy; the in-memory SQLite test database gets the JSON variant.
    """
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(JSONB(none_as_null=True))
        return dialect.type_descriptor(JSON(none_as_null=True))


Base = declarative_base()
