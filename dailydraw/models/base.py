from sqlalchemy.orm import DeclarativeBase

from dailydraw.db.metadata import metadata_obj


class Base(DeclarativeBase):
    """Declarative base for every lottery table; shares the naming convention."""

    metadata = metadata_obj
