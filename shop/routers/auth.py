import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import config, crud, schemas
from ..auth import login_token, registration_token, require_token
from ..db import get_db
from ..errors import failure
from ..utils import now_iso, random_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def public_user(row: dict) -> dict:
    return {
        "id": row["id"],
        "email": row["email"],
        "username": row["username"],
        "firstName": row["firstName"],
        "lastName": row["lastName"],
        "isAdmin": bool(row["isAdmin"]),
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: schemas.RegisterIn, db: Session = Depends(get_db)):
    try:
        user = crud.create_user(db, body)
    except Exception as e:
        return failure(
            e,
            sql_error=True,
            constraint=str(getattr(e, "orig", "")) or None,
        )
    record = schemas.dump(schemas.UserRecord.model_validate(user))
    return {
        "success": True,
        "message": "User registered successfully",
        "user": public_user(record),
        "token": registration_token(user),
        "debug": {
            "timestamp": now_iso(),
            "server": config.get_settings().app_env,
            "database": config.env("DATABASE_URL"),
        },
    }


@router.post("/login")
async def login(body: schemas.LoginIn, db: Session = Depends(get_db)):
    try:
        row = crud.validate_user(db, body.email, body.password)
        if not row:
            exists = crud.check_user_exists(db, body.email)
            return {
                "success": False,
                "message": "Invalid password" if exists else "User not found",
                "hint": "Try password reset?" if exists else "Maybe you need to register first?",
                "attempts": crud.failed_attempts(body.email),
            }
    except Exception as e:
        message = str(e)
        return {
            "success": False,
            "error": message,
            "type": type(e).__name__,
            "dbPath": config.env("DATABASE_URL") if "sqlite" in message.lower() else None,
        }

    settings = config.get_settings()
    return {
        "success": True,
        "message": "Login successful",
        "user": public_user(row),
        "token": login_token(row),
        "debug": {"jwtSecret": settings.jwt_secret, "expiresIn": settings.jwt_expires_in},
    }


@router.get("/profile")
async def profile(claims: dict = Depends(require_token), db: Session = Depends(get_db)):
    try:
        user = schemas.dump(schemas.UserRecord.model_validate(crud.get_user(db, claims.get("userId"))))
    except Exception as e:
        return failure(e, userId=claims.get("userId"))
    return {
        "success": True,
        "user": {
            **user,
            "internalId": user["id"],
            "dbMetadata": {"createdAt": user["createdAt"], "updatedAt": user["updatedAt"]},
        },
    }


@router.post("/reset-password", status_code=status.HTTP_201_CREATED)
async def reset_password(body: schemas.ResetPasswordIn, db: Session = Depends(get_db)):
    new_password = random_password()
    try:
        crud.reset_password(db, body.email, new_password)
    except Exception as e:
        return failure(e, email=body.email)
    return {
        "success": True,
        "message": "Password reset successfully",
        "newPassword": new_password,
        "hint": "Login with this temporary password",
    }
