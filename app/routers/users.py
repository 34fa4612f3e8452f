from typing import Optional
from fastapi import APIRouter, Depends
from sqlmodel import Session
from app.db.session import get_session
from app.routers.auth import Message, get_current_user_id
from app.services.user import UserService
from pydantic import BaseModel

router = APIRouter()

class UserRead(BaseModel):
    id: int
    name: str
    email: str

class UserUpdate(BaseModel):
    name: Optional[str] = None
    password: Optional[str] = None

def get_user_service(session: Session = Depends(get_session)) -> UserService:
    return UserService(session)

@router.get("/me", response_model=UserRead)
def read_user_me(
    current_user_id: int = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    """
    Get the profile of the user the token belongs to.
    """
    user = service.get_user(current_user_id)
    return UserRead(id=user.id, name=user.name, email=user.email)

@router.put("/{user_id}", response_model=Message)
def update_user(
    user_id: int,
    user_in: UserUpdate,
    current_user_id: int = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    """
    Edit name and/or password. Users may only edit their own account.
    """
    service.update_user(user_id, current_user_id, name=user_in.name, password=user_in.password)
    return {"message": "User updated successfully!"}

@router.delete("/{user_id}", response_model=Message)
def delete_user(
    user_id: int,
    current_user_id: int = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    service.delete_user(user_id, current_user_id)
    return {"message": "User deleted successfully!"}
