"""Configuration, health and host introspection (all of it returned to callers)."""
import getpass
import json
import logging
import os
import platform
import resource
import socket
import sys
import time
from pathlib import Path

from . import config
from .utils import now_iso

logger = logging.getLogger(__name__)

STARTED_AT = time.time()
SECURITY_FEATURES = [
    "SQL queries",
    "Input handling",
    "Logging",
    "URL requests",
    "Authentication",
    "File upload",
    "URL fetching",
    "Admin access",
]


def uptime() -> float:
    return time.time() - STARTED_AT


def memory_usage() -> dict:
    usage = resource.getrusage(resource.RUSAGE_SELF)
    return {"maxRss": usage.ru_maxrss, "userTime": usage.ru_utime, "systemTime": usage.ru_stime}


def environment() -> dict:
    return dict(os.environ)


def load_average():
    try:
        return list(os.getloadavg())
    except OSError:
        return None


def network_interfaces() -> list:
    try:
        return [name for _, name in socket.if_nameindex()]
    except OSError:
        return []


def user_info() -> dict:
    return {"username": getpass.getuser(), "uid": os.getuid(), "gid": os.getgid(), "home": str(Path.home())}


def process_info() -> dict:
    return {
        "pid": os.getpid(),
        "ppid": os.getppid(),
        "argv": sys.argv,
        "cwd": os.getcwd(),
        "executable": sys.executable,
        "env": environment(),
    }


def configuration(include_secrets: bool = False) -> dict:
    settings = config.get_settings()
    cfg = {
        "app": {
            "name": "Vulnerable Shop API",
            "version": "1.0.0",
            "environment": settings.app_env,
            "port": int(os.getenv("PORT", "3000") or 3000),
            "cors": {"enabled": True, "origins": os.getenv("ALLOWED_ORIGINS", "*")},
            "security": {
                "jwtExpiresIn": settings.jwt_expires_in,
                "rateLimitEnabled": False,
                "httpsOnly": False,
                "csrfProtection": False,
                "helmetEnabled": False,
            },
        },
        "database": {
            "type": "sqlite",
            "url": config.env("DATABASE_URL"),
            "user": config.env("DB_USER"),
            "logging": True,
            "synchronize": True,
        },
        "upload": {
            "maxFileSize": settings.max_file_size,
            "allowedTypes": "ALL",
            "uploadPath": settings.upload_path,
            "virusScanning": False,
            "contentValidation": False,
        },
        "payment": {
            "provider": "stripe",
            "webhookEndpoint": "/webhook/payment-notification",
            "signatureVerification": False,
        },
        "logging": {
            "level": settings.log_level,
            "logSensitiveData": os.getenv("LOG_SENSITIVE_DATA") == "true",
            "logFile": "./logs/app.log",
        },
    }
    if include_secrets:
        cfg["secrets"] = {
            "jwtSecret": config.env("JWT_SECRET"),
            "databasePassword": config.env("DB_PASSWORD"),
            "webhookSecret": config.env("PAYMENT_WEBHOOK_SECRET"),
            "adminCredentials": {"email": config.env("ADMIN_EMAIL"), "password": config.env("ADMIN_PASSWORD")},
            "apiKeys": {
                "thirdParty": config.env("THIRD_PARTY_API_KEY"),
                "aws": {
                    "accessKeyId": config.env("AWS_ACCESS_KEY_ID"),
                    "secretAccessKey": config.env("AWS_SECRET_ACCESS_KEY"),
                },
            },
        }
    return cfg


def directory_size(path: Path) -> int:
    total = 0
    try:
        for entry in path.iterdir():
            if entry.is_file():
                total += entry.stat().st_size
            elif entry.is_dir():
                total += directory_size(entry)
    except OSError:
        return 0
    return total


def directory_status(dir_path: str) -> dict:
    path = Path(dir_path)
    try:
        stats = path.stat()
        files = sorted(p.name for p in path.iterdir())
    except OSError as e:
        return {"exists": False, "path": dir_path, "error": str(e)}
    return {
        "exists": True,
        "path": dir_path,
        "absolutePath": str(path.resolve()),
        "fileCount": len(files),
        "totalSize": directory_size(path),
        "permissions": stats.st_mode,
        "modified": stats.st_mtime,
        "files": files[:5],
    }


def fake_disk_space() -> dict:
    return {
        "total": "1TB",
        "used": "500GB",
        "available": "500GB",
        "percentage": "50%",
        "warning": "Fake disk space information for demo",
    }


def health(detailed: bool = False) -> dict:
    basic = {"status": "healthy", "timestamp": now_iso(), "uptime": uptime(), "memory": memory_usage()}
    if not detailed:
        return basic
    return {
        **basic,
        "system": {
            "platform": sys.platform,
            "arch": platform.machine(),
            "pythonVersion": platform.python_version(),
            "loadAverage": load_average(),
            "cpus": os.cpu_count(),
            "networkInterfaces": network_interfaces(),
        },
        "database": {
            "connected": True,
            "url": config.env("DATABASE_URL"),
            "lastQuery": now_iso(),
            "queryCount": int(uptime() * 7) % 1000,
        },
        "filesystem": {
            "uploadDirectory": directory_status(config.get_settings().upload_path),
            "logDirectory": directory_status("./logs"),
            "tempDirectory": directory_status("/tmp"),
            "diskSpace": fake_disk_space(),
        },
        "security": {
            "httpsEnabled": False,
            "authenticationRequired": False,
            "rateLimitEnabled": False,
            "corsRestricted": False,
            "features": SECURITY_FEATURES,
        },
    }


def update_configuration(updates: dict) -> dict:
    """Push the requested values into the process environment and record them on disk."""
    logger.info("Configuration update request: %s", {"updates": updates, "timestamp": now_iso()})
    database = updates.get("database") or {}
    jwt_cfg = updates.get("jwt") or {}
    upload = updates.get("upload") or {}
    config.set_env("DATABASE_URL", database.get("url"))
    config.set_env("JWT_SECRET", jwt_cfg.get("secret"))
    config.set_env("JWT_EXPIRES_IN", jwt_cfg.get("expiresIn"))
    config.set_env("UPLOAD_PATH", upload.get("path"))
    config.set_env("MAX_FILE_SIZE", upload.get("maxSize"))

    config_dir = Path(config.get_settings().config_dir)
    config_dir.mkdir(parents=True, exist_ok=True)
    config_path = config_dir / "app.json"
    record = {"updates": updates, "appliedAt": now_iso(), "appliedBy": "system"}
    config_path.write_text(json.dumps(record, indent=2))
    return {"success": True, "configPath": str(config_path), "updates": updates, "appliedAt": record["appliedAt"]}


def system_information(level: str | None = None) -> dict:
    uname = platform.uname()
    basic = {
        "platform": sys.platform,
        "arch": uname.machine,
        "type": uname.system,
        "release": uname.release,
        "hostname": socket.gethostname(),
        "uptime": uptime(),
        "loadavg": load_average(),
        "cpus": os.cpu_count(),
    }
    if level != "detailed":
        return basic
    return {
        **basic,
        "networkInterfaces": network_interfaces(),
        "userInfo": user_info(),
        "process": {**process_info(), "uid": os.getuid(), "gid": os.getgid(), "groups": os.getgroups()},
        "filesystem": {
            "homeDir": str(Path.home()),
            "tmpDir": os.getenv("TMPDIR", "/tmp"),
            "currentDir": os.getcwd(),
            "sitePackages": [p for p in sys.path if p.endswith("site-packages")],
        },
    }


def debug_command(command: str, args: list | None = None) -> dict:
    logger.info("Debug command execution: %s", {"command": command, "args": args, "timestamp": now_iso()})
    if command == "eval":
        return {"warning": "eval() would execute arbitrary Python code"}
    if command == "import":
        return {"warning": "__import__() would load arbitrary modules"}
    if command == "process":
        info = process_info()
        return {"pid": info["pid"], "argv": info["argv"], "env": info["env"], "cwd": info["cwd"]}
    if command == "fs":
        return {
            "warning": "fs operations would allow file system access",
            "currentDir": os.getcwd(),
            "files": sorted(os.listdir("."))[:10],
        }
    if command == "os":
        return {
            "platform": sys.platform,
            "hostname": socket.gethostname(),
            "userInfo": user_info(),
            "networkInterfaces": network_interfaces(),
        }
    return {"error": f"Unknown debug command: {command}"}


def all_secrets() -> dict:
    env = config.env
    return {
        "authentication": {
            "jwtSecret": env("JWT_SECRET"),
            "jwtExpiresIn": env("JWT_EXPIRES_IN"),
            "adminEmail": env("ADMIN_EMAIL"),
            "adminPassword": env("ADMIN_PASSWORD"),
        },
        "database": {"url": env("DATABASE_URL"), "user": env("DB_USER"), "password": env("DB_PASSWORD")},
        "webhooks": {"paymentSecret": env("PAYMENT_WEBHOOK_SECRET")},
        "thirdParty": {
            "apiKey": env("THIRD_PARTY_API_KEY"),
            "paymentApiKey": env("PAYMENT_API_KEY"),
            "emailApiKey": env("EMAIL_API_KEY"),
        },
        "cloud": {
            "aws": {"accessKeyId": env("AWS_ACCESS_KEY_ID"), "secretAccessKey": env("AWS_SECRET_ACCESS_KEY")},
            "docker": {"registryPassword": env("DOCKER_REGISTRY_PASSWORD")},
        },
        "internal": {"uploadPath": env("UPLOAD_PATH"), "logLevel": env("LOG_LEVEL"), "appEnv": env("APP_ENV")},
    }
