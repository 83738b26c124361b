"""
Declarative base shared by every ORM model.

Import this module before any model module to avoid circular imports.
"""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
