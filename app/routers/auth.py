from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlmodel import Session
from pydantic import BaseModel
from app.core.config import Settings
from app.core.security import decode_access_token
from app.db.session import get_session
from app.models.user import User
from app.services.auth import AuthService

router = APIRouter()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login")


class UserCreate(BaseModel):
    name: str
    email: str
    password: str

class LoginRequest(BaseModel):
    email: str
    password: str

class Token(BaseModel):
    token: str

class Message(BaseModel):
    message: str


def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_auth_service(
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(session, settings)

@router.post("/register", response_model=Message, status_code=status.HTTP_201_CREATED)
def register(user_in: UserCreate, service: AuthService = Depends(get_auth_service)):
    service.register_user(user_in.name, user_in.email, user_in.password)
    return {"message": "User created successfully!"}

@router.post("/login", response_model=Token)
def login(data: LoginRequest, service: AuthService = Depends(get_auth_service)):
    return {"token": service.login(data.email, data.password)}

credentials_exception = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)

def get_current_user_id(
    token: str = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings),
) -> int:
    """Id carried by a valid token. The account itself may be gone."""
    try:
        payload = decode_access_token(token, settings)
        return int(payload.get("sub"))
    except (JWTError, TypeError, ValueError):
        raise credentials_exception

def get_current_user(
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session),
) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise credentials_exception
    return user
