from sqlalchemy.orm import Session
from retail_core.models import User, Role
from retail_core.security import get_password_hash


def get_user_by_username(db: Session, username: str):
    return db.query(User).filter(User.username == username).first()


def create_user(db: Session, username: str, pin: str, role: Role = Role.EMPLOYEE, full_name: str = None):
    user = User(
        username=username,
        full_name=full_name or username.capitalize(),
        password_hash=get_password_hash(pin),
        role=role,
    )
    db.add(user)
    db.flush()
    return user
