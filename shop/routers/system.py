import logging
import os
import platform
import sys
from typing import Any, Optional

from fastapi import APIRouter, Body, Header, status

from .. import config, schemas, sysinfo
from ..errors import failure
from ..utils import now_iso

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Configuration"])

CONFIG_KEY = "config123"
SECRETS_KEY = "secret123"
DEBUG_COMMANDS = ["eval", "import", "process", "fs", "os", "subprocess", "socket", "hashlib", "pickle"]


@router.get("/config")
async def get_config(includeSecrets: Optional[str] = None):
    try:
        cfg = sysinfo.configuration(includeSecrets == "true")
    except Exception as e:
        return failure(e, always_stack=True)
    settings = config.get_settings()
    return {
        "success": True,
        "config": cfg,
        "metadata": {
            "configVersion": "1.0.0",
            "lastUpdated": now_iso(),
            "environment": settings.app_env,
            "database": config.env("DATABASE_URL"),
            "jwtSecret": config.env("JWT_SECRET"),
        },
        "paths": {
            "uploadDirectory": settings.upload_path,
            "logDirectory": "./logs",
            "configDirectory": settings.config_dir,
            "applicationRoot": os.getcwd(),
        },
    }


@router.get("/health")
async def get_health(detailed: Optional[str] = None):
    try:
        health = sysinfo.health(detailed == "true")
    except Exception as e:
        return {**failure(e, always_stack=True), "status": "unhealthy"}
    return {
        "success": True,
        "status": "healthy",
        "timestamp": now_iso(),
        "health": health,
        "system": {
            "uptime": sysinfo.uptime(),
            "memory": sysinfo.memory_usage(),
            "platform": sys.platform,
            "pythonVersion": platform.python_version(),
            "pid": os.getpid(),
        },
        "application": {
            "environment": config.get_settings().app_env,
            "port": os.getenv("PORT", "3000"),
            "database": {"url": config.env("DATABASE_URL"), "connected": True, "lastQuery": now_iso()},
            "services": {"paymentGateway": "connected", "emailService": "connected", "fileStorage": "local"},
        },
    }


@router.post("/config/update", status_code=status.HTTP_201_CREATED)
async def update_config(
    updates: dict[str, Any] = Body(default_factory=dict),
    force: Optional[str] = None,
    x_admin_key: Optional[str] = Header(None),
):
    if x_admin_key != CONFIG_KEY and force != "true":
        return {
            "success": False,
            "message": "Admin key required for configuration updates",
            "hint": "Use X-Admin-Key header",
            "currentConfig": sysinfo.configuration(False),
        }
    if force == "true":
        logger.warning("Configuration update forced without proper auth: %s", {
            "updates": updates,
            "timestamp": now_iso(),
            "warning": "Configuration updated via force parameter",
        })
    try:
        result = sysinfo.update_configuration(updates)
    except Exception as e:
        return failure(e, always_stack=True, updates=updates)
    return {
        "success": True,
        "message": "Configuration updated successfully",
        "updates": updates,
        "result": result,
        "newConfig": sysinfo.configuration(True),
        "updatedAt": now_iso(),
    }


@router.get("/env")
async def get_env(filter: Optional[str] = None):
    env = sysinfo.environment()
    if filter:
        env = {key: value for key, value in env.items() if filter.lower() in key.lower()}

    def is_set(name):
        return "SET" if config.env(name) else "NOT_SET"

    return {
        "success": True,
        "environment": env,
        "count": len(env),
        "systemInfo": {
            "appEnv": config.env("APP_ENV"),
            "platform": sys.platform,
            "architecture": platform.machine(),
            "hostname": config.env("HOSTNAME"),
            "user": config.env("USER") or config.env("USERNAME"),
            "shell": config.env("SHELL"),
            "path": config.env("PATH"),
        },
        "secretsInfo": {
            "jwtSecret": is_set("JWT_SECRET"),
            "dbPassword": is_set("DB_PASSWORD"),
            "webhookSecret": is_set("PAYMENT_WEBHOOK_SECRET"),
            "adminPassword": is_set("ADMIN_PASSWORD"),
        },
    }


@router.get("/system")
async def get_system(level: Optional[str] = None):
    try:
        info = sysinfo.system_information(level)
    except Exception as e:
        return failure(e, always_stack=True, level=level)
    return {
        "success": True,
        "system": info,
        "process": {
            "pid": os.getpid(),
            "ppid": os.getppid(),
            "platform": sys.platform,
            "arch": platform.machine(),
            "version": platform.python_version(),
            "executable": sys.executable,
            "argv": sys.argv,
            "cwd": os.getcwd(),
            "uptime": sysinfo.uptime(),
            "memoryUsage": sysinfo.memory_usage(),
        },
        "filesystem": {
            "currentDirectory": os.getcwd(),
            "homeDirectory": config.env("HOME") or config.env("USERPROFILE"),
            "tempDirectory": config.env("TMPDIR") or config.env("TEMP") or "/tmp",
            "pathSeparator": os.sep,
        },
    }


@router.post("/debug", status_code=status.HTTP_201_CREATED)
async def debug(body: schemas.DebugIn):
    logger.info("Debug command received: %s", {"command": body.command, "args": body.args, "timestamp": now_iso()})
    try:
        result = sysinfo.debug_command(body.command, body.args)
    except Exception as e:
        return failure(e, always_stack=True, command=body.command, args=body.args)
    return {
        "success": True,
        "command": body.command,
        "args": body.args,
        "result": result,
        "executedAt": now_iso(),
        "availableCommands": DEBUG_COMMANDS,
    }


@router.get("/secrets")
async def get_secrets(key: Optional[str] = None):
    if key != SECRETS_KEY:
        return {
            "success": False,
            "message": "Invalid key for secrets access",
            "partialSecrets": {
                "jwtSecretLength": len(config.env("JWT_SECRET") or ""),
                "dbUrlPresent": bool(config.env("DATABASE_URL")),
                "webhookSecretPresent": bool(config.env("PAYMENT_WEBHOOK_SECRET")),
            },
        }
    return {
        "success": True,
        "secrets": sysinfo.all_secrets(),
        "allSecrets": {
            "jwt": config.env("JWT_SECRET"),
            "database": config.env("DATABASE_URL"),
            "webhook": config.env("PAYMENT_WEBHOOK_SECRET"),
            "admin": config.env("ADMIN_PASSWORD"),
            "apiKeys": {
                "thirdParty": config.env("THIRD_PARTY_API_KEY"),
                "payment": config.env("PAYMENT_API_KEY"),
                "email": config.env("EMAIL_API_KEY"),
            },
            "docker": config.env("DOCKER_REGISTRY_PASSWORD"),
            "aws": {
                "accessKeyId": config.env("AWS_ACCESS_KEY_ID"),
                "secretAccessKey": config.env("AWS_SECRET_ACCESS_KEY"),
            },
        },
        "warning": "All application secrets exposed",
        "timestamp": now_iso(),
    }
