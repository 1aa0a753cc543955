from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import portfolio as portfolio_service
from ..utils.dependencies import Caller
from ..utils.roles import role_required

router = APIRouter(prefix="/student/portfolio", tags=["Portfolio"])


class PortfolioProject(BaseModel):
    title: str | None = None
    description: str | None = None
    url: str | None = None


class PortfolioUpdate(BaseModel):
    about: str | None = None
    interests: list[str] | None = None
    projects: list[PortfolioProject] | None = None
    skills: list[str] | None = None


@router.get("")
def get_portfolio(
    db: Session = Depends(get_db),
    caller: Caller = Depends(role_required("portfolio:edit")),
):
    return portfolio_service.get_portfolio(db, caller)


@router.put("")
def update_portfolio(
    body: PortfolioUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(role_required("portfolio:edit")),
):
    # Omitted fields keep their stored value; an explicit null clears them.
    return portfolio_service.update_portfolio(db, caller, body.model_dump(exclude_unset=True))
