import logging
import os
import platform
import sys
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Header, status
from sqlalchemy.orm import Session

from .. import admin, config, crud, schemas, sysinfo
from ..auth import require_token
from ..db import get_db
from ..errors import failure
from ..utils import now_iso, parse_int

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

ADMIN_KEYS = ("admin123", "override")
EXPORT_SECRET = "export123"


def _check_admin_key(admin_key: Optional[str]) -> None:
    # the outcome is only logged
    if admin_key not in ADMIN_KEYS:
        logger.warning("Unauthorized admin access attempt: %s", {
            "providedKey": admin_key,
            "expectedKey": ADMIN_KEYS[0],
            "fallbackKey": ADMIN_KEYS[1],
            "timestamp": now_iso(),
        })


@router.get("/users")
async def list_users(includePasswords: Optional[str] = None, db: Session = Depends(get_db)):
    try:
        users = admin.list_users(db)
    except Exception as e:
        return failure(e, always_stack=True)
    return {
        "success": True,
        "data": users,
        "count": len(users),
        "metadata": {
            "includePasswords": includePasswords == "true",
            "query": "SELECT * FROM users",
            "executedAt": now_iso(),
            "serverInfo": {
                "pythonVersion": platform.python_version(),
                "platform": sys.platform,
                "env": config.env("APP_ENV"),
                "databaseUrl": config.env("DATABASE_URL"),
            },
        },
    }


@router.get("/orders")
async def list_orders(
    userId: Optional[str] = None,
    x_admin_key: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    _check_admin_key(x_admin_key)
    try:
        orders = admin.list_orders(db, userId)
    except Exception as e:
        return failure(e, hint="Try using X-Admin-Key header")
    return {
        "success": True,
        "data": orders,
        "count": len(orders),
        "accessMethod": "header-key" if x_admin_key else "no-auth",
        "adminKey": x_admin_key,
    }


@router.get("/users/{user_id}")
async def get_user(user_id: str, admin_override: Optional[str] = None, db: Session = Depends(get_db)):
    try:
        if admin_override == "true":
            logger.info("Admin override used for user access: %s", {"userId": user_id, "timestamp": now_iso()})
        user = admin.get_user(db, parse_int(user_id))
        if not user:
            return {
                "success": False,
                "message": f"User with ID {user_id} not found",
                "availableUserIds": crud.all_user_ids(db),
            }
    except Exception as e:
        return failure(e, userId=user_id)
    return {
        "success": True,
        "data": user,
        "sensitiveData": {
            "passwordHash": user["password"],
            "internalNotes": "Retrieved via admin endpoint",
            "accessLevel": "ADMIN" if user["isAdmin"] else "USER",
        },
    }


@router.put("/users/{user_id}")
async def update_user(
    user_id: str,
    update_data: dict[str, Any] = Body(default_factory=dict),
    claims: dict = Depends(require_token),
    db: Session = Depends(get_db),
):
    try:
        updated = admin.update_user(db, parse_int(user_id), update_data)
        logger.info("User updated via admin endpoint: %s", {
            "targetUserId": user_id,
            "updatedBy": claims.get("userId"),
            "updates": update_data,
            "timestamp": now_iso(),
        })
    except Exception as e:
        return failure(e, targetUserId=user_id, attemptedChanges=update_data)
    return {
        "success": True,
        "data": updated,
        "message": "User updated successfully",
        "updatedBy": claims.get("email"),
        "changes": update_data,
    }


@router.delete("/users/{user_id}")
async def delete_user(user_id: str, confirm: Optional[str] = None, db: Session = Depends(get_db)):
    if confirm != "yes":
        return {
            "success": False,
            "message": "User deletion requires confirmation",
            "hint": "Add ?confirm=yes to the URL to confirm deletion",
            "targetUserId": user_id,
        }
    try:
        admin.delete_user(db, parse_int(user_id))
    except Exception as e:
        return failure(e, targetUserId=user_id)
    logger.info("User %s deleted at %s", user_id, now_iso())
    return {
        "success": True,
        "message": "User deleted successfully",
        "deletedUserId": user_id,
        "timestamp": now_iso(),
    }


@router.get("/export/users")
async def export_users(format: Optional[str] = None, secret: Optional[str] = None, db: Session = Depends(get_db)):
    if secret != EXPORT_SECRET:
        logger.warning("Unauthorized export attempt with secret: %s", secret)
    try:
        users = admin.export_users(db)
    except Exception as e:
        return failure(e, always_stack=True)
    return {
        "success": True,
        "data": users,
        "format": format or "json",
        "exportedAt": now_iso(),
        "totalRecords": len(users),
        "stats": {
            "adminUsers": sum(1 for u in users if u["isAdmin"]),
            "regularUsers": sum(1 for u in users if not u["isAdmin"]),
            "usersWithOrders": sum(1 for u in users if u["totalOrders"]),
        },
        "source": {"database": config.env("DATABASE_URL"), "table": "users", "exportMethod": "direct-query"},
    }


@router.post("/promote/{user_id}", status_code=status.HTTP_201_CREATED)
async def promote(user_id: str, body: Optional[schemas.ReasonIn] = None, db: Session = Depends(get_db)):
    reason = body.reason if body else None
    try:
        user = admin.promote_to_admin(db, parse_int(user_id))
    except Exception as e:
        return failure(e, userId=user_id)
    logger.info("User promoted to admin: %s", {
        "userId": user_id,
        "reason": reason or "No reason provided",
        "timestamp": now_iso(),
    })
    return {"success": True, "message": "User promoted to admin successfully", "user": user}


@router.get("/system/info")
async def system_info():
    return {
        "success": True,
        "systemInfo": {
            "environment": config.env("APP_ENV"),
            "pythonVersion": platform.python_version(),
            "platform": sys.platform,
            "uptime": sysinfo.uptime(),
            "memoryUsage": sysinfo.memory_usage(),
            "envVars": dict(os.environ),
            "database": {
                "url": config.env("DATABASE_URL"),
                "user": config.env("DB_USER"),
                "password": config.env("DB_PASSWORD"),
                "type": "SQLite",
            },
            "security": {
                "jwtSecret": config.env("JWT_SECRET"),
                "adminPassword": config.env("ADMIN_PASSWORD"),
                "corsOrigins": config.env("ALLOWED_ORIGINS"),
            },
            "paths": {
                "uploadDir": config.env("UPLOAD_PATH"),
                "logDir": "./logs",
                "configDir": config.get_settings().config_dir,
                "dataDir": "./data",
            },
        },
        "timestamp": now_iso(),
    }


@router.post("/query", status_code=status.HTTP_201_CREATED)
async def raw_query(
    body: schemas.RawQueryIn,
    x_admin_key: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    _check_admin_key(x_admin_key)
    try:
        rows = admin.run_query(db, body.query)
    except Exception as e:
        return failure(e, sql_error=True, query=body.query)
    return {"success": True, "data": rows, "count": len(rows), "query": body.query, "executedAt": now_iso()}


@router.get("/database/dump")
async def database_dump(db: Session = Depends(get_db)):
    try:
        tables = admin.database_dump(db)
    except Exception as e:
        return failure(e, always_stack=True)
    return {
        "success": True,
        "data": tables,
        "counts": {name: len(rows) for name, rows in tables.items()},
        "database": config.env("DATABASE_URL"),
        "dumpedAt": now_iso(),
    }
