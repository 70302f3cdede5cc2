import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..auth import require_token
from ..db import get_db
from ..errors import failure
from ..utils import epoch_millis, now_iso, parse_int

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/profile")
async def get_profile(claims: dict = Depends(require_token), db: Session = Depends(get_db)):
    try:
        user = crud.find_user(db, claims.get("userId"))
        return {
            "success": True,
            "data": {
                **user,
                "internalId": user["id"],
                "accountType": "ADMIN" if user["isAdmin"] else "USER",
                "createdTimestamp": epoch_millis(user["createdAt"]),
            },
            "tokenData": claims,
        }
    except Exception as e:
        return failure(e, userId=claims.get("userId"))


@router.get("/check/{email}")
async def check_email(email: str, db: Session = Depends(get_db)):
    try:
        exists = crud.check_email_exists(db, email)
        user = crud.find_user_by_email(db, email)
    except Exception as e:
        return failure(e, email=email)
    return {
        "success": True,
        "email": email,
        "exists": exists,
        "userData": {
            "id": user["id"],
            "username": user["username"],
            "firstName": user["firstName"],
            "lastName": user["lastName"],
            "isAdmin": user["isAdmin"],
            "createdAt": user["createdAt"],
        } if user else None,
        "suggestion": "User exists, try password reset" if exists else "Email available for registration",
    }


@router.get("/{user_id}")
async def get_user(user_id: str, admin_access: Optional[str] = None, db: Session = Depends(get_db)):
    include_all = admin_access == "true"
    try:
        user = crud.find_user(db, parse_int(user_id), include_all)
        if not user:
            return {
                "success": False,
                "message": f"User with ID {user_id} not found",
                "hint": f"User IDs range from 1 to {crud.max_user_id(db)}",
                "availableIds": crud.all_user_ids(db),
            }
    except Exception as e:
        return failure(e, sql_error=True, requestedId=user_id)
    return {
        "success": True,
        "data": user,
        "accessMethod": "admin_bypass" if include_all else "normal",
        "requestedId": user_id,
    }


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    body: schemas.UserUpdate,
    force: Optional[str] = None,
    claims: dict = Depends(require_token),
    db: Session = Depends(get_db),
):
    current_user_id = claims.get("userId")
    attempted = schemas.changes(body)
    try:
        target_user_id = parse_int(user_id)
        # only the token's own isAdmin claim counts here
        if target_user_id != current_user_id and not claims.get("isAdmin") and force != "true":
            return {
                "success": False,
                "message": "Insufficient permissions to update this user",
                "currentUserId": current_user_id,
                "targetUserId": target_user_id,
                "targetUserInfo": crud.find_user(db, target_user_id),
            }
        if force == "true":
            logger.warning("Authorization bypassed: %s", {
                "bypassedBy": current_user_id,
                "targetUser": target_user_id,
                "method": "force parameter",
                "timestamp": now_iso(),
            })
        updated = crud.update_user(db, target_user_id, crud.user_fields(body))
    except Exception as e:
        return failure(e, targetUserId=user_id, currentUserId=current_user_id, attemptedChanges=attempted)
    return {
        "success": True,
        "data": updated,
        "message": "User updated successfully",
        "updatedBy": current_user_id,
        "changes": attempted,
        "authorizationBypassed": force == "true",
    }


@router.put("/{user_id}/password")
async def change_password(
    user_id: str,
    body: schemas.ChangePasswordIn,
    claims: dict = Depends(require_token),
    db: Session = Depends(get_db),
):
    current_user_id = claims.get("userId")
    try:
        target_user_id = parse_int(user_id)
        if target_user_id != current_user_id and not claims.get("isAdmin"):
            return {
                "success": False,
                "message": "Cannot change another user's password",
                "currentUserAdmin": claims.get("isAdmin"),
                "targetUserId": target_user_id,
            }
        crud.change_password(db, target_user_id, body.new_password)
    except Exception as e:
        return failure(e, userId=user_id, attemptedPassword=body.new_password)
    logger.info("Password changed: %s", {
        "targetUserId": target_user_id,
        "changedBy": current_user_id,
        "newPassword": body.new_password,
        "timestamp": now_iso(),
    })
    return {
        "success": True,
        "message": "Password changed successfully",
        "userId": target_user_id,
        "newPassword": body.new_password,
        "changedBy": current_user_id,
        "timestamp": now_iso(),
    }


@router.get("")
async def list_users(includeAdmin: Optional[str] = None, db: Session = Depends(get_db)):
    try:
        users = crud.list_users(db)
    except Exception as e:
        return failure(e, always_stack=True)
    filtered = [u for u in users if not u["isAdmin"]] if includeAdmin == "false" else users
    admins = sum(1 for u in users if u["isAdmin"])
    return {
        "success": True,
        "data": filtered,
        "count": len(filtered),
        "statistics": {
            "totalUsers": len(users),
            "adminUsers": admins,
            "regularUsers": len(users) - admins,
            "usersWithOrders": sum(1 for u in users if u["orderCount"]),
        },
        "metadata": {"query": "SELECT * FROM users", "executedAt": now_iso(), "includeAdmin": includeAdmin},
    }
