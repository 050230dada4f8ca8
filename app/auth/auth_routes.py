import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app import schemas
from app.database import get_db
from app.models import University, User
from .auth_service import admin_required, authenticate_user, generate_token, get_current_user, hash_password

logger = logging.getLogger(__name__)

router = APIRouter()


def _profile(user: User) -> schemas.UserProfile:
    profile = schemas.UserProfile.model_validate(user)
    if user.university is not None:
        profile.university_name = user.university.name
        profile.university_city = user.university.city
    return profile


@router.post("/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def register(user: schemas.UserCreate, db: Session = Depends(get_db)):
    existing = db.query(User).filter(User.email == user.email).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    if user.university_id is not None and db.get(University, user.university_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="University not found")

    new_user = User(
        email=user.email,
        username=user.username,
        password_hash=hash_password(user.password),
        university_id=user.university_id,
    )
    db.add(new_user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    db.refresh(new_user)
    logger.info(f"Registered user {new_user.id} ({new_user.email})")

    return {
        "message": "Registration successful",
        "token": generate_token(new_user),
        "user": _profile(new_user),
    }


@router.post("/login", response_model=schemas.AuthResponse)
def login(credentials: schemas.LoginRequest, db: Session = Depends(get_db)):
    auth_user = authenticate_user(credentials.email, credentials.password, db)
    if not auth_user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    logger.info(f"User {auth_user.id} logged in")
    return {
        "message": "Login successful",
        "token": generate_token(auth_user),
        "user": _profile(auth_user),
    }


@router.get("/me", response_model=schemas.UserProfile)
def me(current_user: User = Depends(get_current_user)):
    return _profile(current_user)


@router.post("/logout", response_model=schemas.MessageResponse)
def logout(_: User = Depends(get_current_user)):
    # Tokens are stateless; the client discards its copy.
    return {"message": "Logout successful"}


@router.get("/users", response_model=list[schemas.UserResponse])
def get_all_users(db: Session = Depends(get_db), _: User = Depends(admin_required)):
    return db.query(User).order_by(User.id).all()


@router.get("/users/{user_id}", response_model=schemas.UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db), _: User = Depends(admin_required)):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.patch("/admin/users/{user_id}", response_model=schemas.UserResponse)
def update_user_role(
    user_id: int,
    data: schemas.UpdateRoleRequest,
    db: Session = Depends(get_db),
    _: User = Depends(admin_required),
):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    user.role = data.role
    db.commit()
    db.refresh(user)
    logger.info(f"User {user.id} role set to {user.role}")
    return user
