from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from retail_core.config import SECRET_KEY, ALGORITHM
from retail_core.database import get_db
from retail_core.context import Actor
from retail_core.errors import PersistenceError
from retail_core.models import User, Role

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def verify_pin(plain_password, hashed_password):
    """Verifica si el PIN coincide con el hash guardado."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    """Genera el hash seguro del PIN."""
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=15)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def get_current_actor(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> Actor:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Credenciales no válidas",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        username: str = payload.get("sub")
        if username is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    try:
        user = db.query(User).filter(User.username == username).first()
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceError("No se pudo validar la sesión") from exc
    if user is None or not user.is_active:
        raise credentials_exception

    return Actor(id=user.id, username=user.username, role=user.role)


def require_role(role: Role):
    """ADMIN puede todo; los demás solo lo de su rol."""
    def checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role != role and actor.role != Role.ADMIN:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Acceso denegado")
        return actor
    return checker
