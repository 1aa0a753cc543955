
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import bootstrap as bootstrap_service
from ..utils.dependencies import Caller, get_current_caller

router = APIRouter(prefix="/bootstrap", tags=["Bootstrap"])


@router.post("")
def bootstrap_user(db: Session = Depends(get_db), caller: Caller = Depends(get_current_caller)):
    """
    First-login hook. Ensures the profile row and the role-specific row exist,
    then tells the client which dashboard to open. Safe to call on every login.
    """
    return bootstrap_service.bootstrap(db, caller)


@router.get("")
def get_user_profile(db: Session = Depends(get_db), caller: Caller = Depends(get_current_caller)):
    return bootstrap_service.get_profile(db, caller)
