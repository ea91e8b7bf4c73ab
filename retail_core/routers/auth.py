from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from datetime import timedelta

from retail_core.config import ACCESS_TOKEN_EXPIRE_MINUTES
from retail_core.database import get_db
from retail_core.security import Actor, get_current_actor, verify_pin, create_access_token
from retail_core.schemas.auth import Token
from retail_core.crud.users import get_user_by_username

router = APIRouter()


@router.post("/login", response_model=Token)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    # 1. Buscar usuario
    user = get_user_by_username(db, username=form_data.username)
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuario incorrecto",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # 2. Verificar PIN (OAuth2 lo envía en el campo 'password')
    if not verify_pin(form_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="PIN incorrecto",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # 3. Generar Token
    access_token = create_access_token(
        data={"sub": user.username, "role": user.role.value},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me")
def read_me(actor: Actor = Depends(get_current_actor)):
    return {"id": actor.id, "username": actor.username, "role": actor.role.value}
