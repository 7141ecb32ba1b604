from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.user import AccountDelete, UserCreate, UserLogin, UserOut
from app.models.user import User
from app.models.enums import UserRole
from app.core.security import hash_password, verify_password
from app.core.jwt import create_access_token
from app.core.dependencies import get_current_user
from app.core.logging_config import get_logger

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = get_logger()


# =====================================================================
#                              REGISTER
# =====================================================================
@router.post("/register", status_code=201)
def register(data: UserCreate, db: Session = Depends(get_db)):
    if db.query(User).filter(User.email == data.email).first():
        raise HTTPException(status_code=400, detail="User already exists")

    user = User(
        name=data.name,
        email=data.email,
        phone=data.phone,
        password_hash=hash_password(data.password),
        role=UserRole(data.role),
    )

    db.add(user)
    db.commit()

    return {"message": "User registered successfully"}


# =====================================================================
#                                LOGIN
# =====================================================================
@router.post("/login")
def login(data: UserLogin, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == data.email).first()

    if not user or not verify_password(data.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token({"sub": user.email, "role": user.role.value})

    return {
        "access_token": token,
        "role": user.role.value,
        "token_type": "bearer"
    }


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user


# =====================================================================
#                           DELETE ACCOUNT
# =====================================================================
@router.post("/delete-account")
def delete_account(
    data: AccountDelete,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not data.password:
        raise HTTPException(status_code=400, detail="Password is required to delete account")

    if not verify_password(data.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid password. Account deletion cancelled.")

    email = user.email
    # Owned venues, bookings and ratings are removed with the account
    db.delete(user)
    db.commit()

    logger.info(f"Account Deleted | User={email}")
    return {"message": "Account deleted successfully"}
