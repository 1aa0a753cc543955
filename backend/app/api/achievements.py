from fastapi import APIRouter, Depends, Path, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import achievements as achievement_service
from ..utils.dependencies import Caller, get_current_caller
from ..utils.roles import role_required
from ..utils.validation import MAX_DB_INT

router = APIRouter(prefix="/achievements", tags=["Achievements"])


class AchievementCreate(BaseModel):
    # Field names follow the frontend's camelCase payloads.
    model_config = ConfigDict(populate_by_name=True)

    category_id: str | None = Field(default=None, alias="categoryId")
    title: str | None = None
    description: str | None = None
    date_achieved: str | None = Field(default=None, alias="dateAchieved")  # ISO date or datetime
    skill_tags: list[str] | None = Field(default=None, alias="skillTags")
    is_public: bool | None = Field(default=None, alias="isPublic")


class AchievementDecision(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str | None = None  # approved | rejected
    credits: int | None = Field(default=None, strict=True)
    rejection_reason: str | None = Field(default=None, alias="rejectionReason")


@router.get("/categories")
def list_categories(db: Session = Depends(get_db)):
    return {"success": True, "categories": achievement_service.list_categories(db)}


@router.post("", status_code=status.HTTP_201_CREATED)
def submit_achievement(
    body: AchievementCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(role_required("achievement:submit")),
):
    achievement = achievement_service.submit(
        db,
        caller,
        category_id=body.category_id,
        title=body.title,
        description=body.description,
        date_achieved=body.date_achieved,
        skill_tags=body.skill_tags,
        is_public=body.is_public,
    )
    return {
        "success": True,
        "achievement": achievement,
        "message": "Achievement submitted successfully! It is now pending faculty approval.",
    }


@router.get("")
def list_achievements(
    status: str | None = None,
    student_id: str | None = None,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    achievements = achievement_service.list_achievements(db, caller, status=status, student_id=student_id)
    return {"success": True, "achievements": achievements}


@router.get("/{achievement_id}")
def get_achievement(
    achievement_id: int = Path(ge=1, le=MAX_DB_INT),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    return {"success": True, "achievement": achievement_service.get_achievement(db, caller, achievement_id)}


@router.patch("/{achievement_id}")
def decide_achievement(
    body: AchievementDecision,
    achievement_id: int = Path(ge=1, le=MAX_DB_INT),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    """
    Faculty decision on a pending achievement. Permission comes from the
    faculty profile's approval power, not from the role alone, so the lookup
    happens inside the workflow (404 without a faculty profile, 403 without
    approval power or above the credit ceiling).
    """
    return achievement_service.decide(
        db,
        caller,
        achievement_id,
        decision=body.status,
        credits=body.credits,
        rejection_reason=body.rejection_reason,
    )
