"""Declarative base shared by the unity tables."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
