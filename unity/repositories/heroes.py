"""Data access for the heroes catalog."""

from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from unity.core.database import transaction
from unity.core.errors import NotFoundError, StorageError
from unity.models import Hero


def create_hero(
    db: Session,
    name: str,
    description: str,
    image_url: str,
    birth_date: date,
) -> Hero:
    hero = Hero(
        name=name,
        description=description,
        image_url=image_url,
        birth_date=birth_date,
    )
    with transaction(db, "Failed to create hero"):
        db.add(hero)
    db.refresh(hero)
    return hero


def list_heroes(db: Session) -> list[Hero]:
    """Newest first."""
    try:
        return db.query(Hero).order_by(Hero.created_at.desc(), Hero.id.desc()).all()
    except SQLAlchemyError as e:
        raise StorageError("Failed to load heroes") from e


def get_hero(db: Session, hero_id: int) -> Hero | None:
    return db.get(Hero, hero_id)


def update_hero(
    db: Session,
    hero_id: int,
    name: str,
    description: str,
    image_url: str,
    birth_date: date,
) -> Hero:
    with transaction(db, "Failed to update hero"):
        hero = db.get(Hero, hero_id)
        if hero is None:
            raise NotFoundError("Hero not found")
        hero.name = name
        hero.description = description
        hero.image_url = image_url
        hero.birth_date = birth_date
    db.refresh(hero)
    return hero


def delete_hero(db: Session, hero_id: int) -> None:
    with transaction(db, "Failed to delete hero"):
        hero = db.get(Hero, hero_id)
        if hero is None:
            raise NotFoundError("Hero not found")
        db.delete(hero)
