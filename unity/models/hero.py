"""ORM model for the admin-managed heroes catalog. Not related to users or posts."""

from sqlalchemy import Column, Date, DateTime, Integer, String, Text, func

from unity.models.base import Base


class Hero(Base):
    __tablename__ = "heroes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    birth_date = Column(Date, nullable=False)
    image_url = Column(String(2048), nullable=False, default="")
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )
