from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from fileshare import crud, schemas
from fileshare.api import deps
from fileshare.services.lifecycle import ShareLifecycle

router = APIRouter()

@router.post("/", status_code=201, response_model=schemas.User)
def create_user(
    *,
    db: Session = Depends(deps.get_db),
    user_in: schemas.UserCreate,
) -> Any:
    """
    Create new user.
    """
    if crud.user.get_by_email(db, email=user_in.email):
        raise HTTPException(
            status_code=400,
            detail="The user with this email already exists in the system.",
        )
    return crud.user.create(db, obj_in=user_in)

@router.get("/{user_id}", response_model=schemas.User)
def read_user(
    user_id: int,
    db: Session = Depends(deps.get_db),
) -> Any:
    user = crud.user.get(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user

@router.get("/{user_id}/files", response_model=List[schemas.ShareRecord])
def read_user_files(
    user_id: int,
    lifecycle: ShareLifecycle = Depends(deps.get_lifecycle),
) -> Any:
    """
    List every share a user created.
    """
    return lifecycle.list_user_shares(user_id)
