"""Public heroes catalog."""

from fastapi import APIRouter

from unity.api.deps import DbSession
from unity.repositories import heroes as heroes_repo
from unity.schemas.hero import HeroOut

router = APIRouter()


@router.get("", response_model=list[HeroOut])
def list_heroes(db: DbSession) -> list[HeroOut]:
    return [HeroOut.model_validate(h) for h in heroes_repo.list_heroes(db)]
