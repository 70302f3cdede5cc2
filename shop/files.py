"""Upload storage. Caller-supplied names are joined onto the base path as given."""
import logging
import os
import shutil
import time
from pathlib import Path
from typing import BinaryIO, Optional

import requests

from . import config
from .utils import now_iso

logger = logging.getLogger(__name__)

DANGEROUS_EXTENSIONS = {".exe", ".bat", ".cmd", ".scr", ".pif", ".com"}
USER_AGENT = "Shop/1.0 (File Downloader)"


def upload_dir() -> str:
    path = config.get_settings().upload_path
    os.makedirs(path, exist_ok=True)
    return path


def resolve(filename: str, base: Optional[str] = None) -> str:
    return os.path.join(base or upload_dir(), filename)


def is_dangerous(filename: str) -> bool:
    extension = os.path.splitext(filename)[1].lower()
    if extension in DANGEROUS_EXTENSIONS:
        logger.warning("DANGEROUS FILE UPLOADED: %s", {
            "filename": filename,
            "extension": extension,
            "warning": "Executable file detected but still allowed",
        })
        return True
    return False


def store(stream: BinaryIO, filename: str, content_type: Optional[str] = None) -> dict:
    """Write an uploaded stream to ``<upload dir>/<filename>`` and describe it."""
    destination = upload_dir()
    path = os.path.join(destination, filename)
    with open(path, "wb") as out:
        shutil.copyfileobj(stream, out)
    return {
        "originalName": filename,
        "filename": filename,
        "destination": destination,
        "path": path,
        "size": os.path.getsize(path),
        "mimetype": content_type,
    }


def file_info(saved: dict, metadata: Optional[dict] = None) -> dict:
    info = {
        "originalName": saved["originalName"],
        "filename": saved["filename"],
        "path": saved["path"],
        "size": saved["size"],
        "mimetype": saved["mimetype"],
        "uploadedAt": now_iso(),
        "metadata": metadata or {},
        "fullSystemPath": os.path.abspath(saved["path"]),
        "securityCheck": "SKIPPED",
        "dangerous": is_dangerous(saved["originalName"]),
    }
    logger.info("File saved with info: %s", info)
    return info


def download_from_url(url: str, filename: Optional[str] = None) -> dict:
    logger.info("Downloading file from URL: %s", {"url": url, "filename": filename, "timestamp": now_iso()})
    started = time.monotonic()
    # no timeout; redirects followed
    response = requests.get(url, stream=True, timeout=None, allow_redirects=True, headers={"User-Agent": USER_AGENT})
    download_time = int((time.monotonic() - started) * 1000)

    name = filename or os.path.basename(url) or f"download_{int(time.time() * 1000)}"
    path = os.path.join(upload_dir(), name)
    with open(path, "wb") as out:
        for chunk in response.iter_content(chunk_size=8192):
            out.write(chunk)
    return {
        "filename": name,
        "path": path,
        "size": os.path.getsize(path),
        "downloadTime": download_time,
        "headers": dict(response.headers),
        "statusCode": response.status_code,
    }


def list_files(directory: str) -> list[dict]:
    names = sorted(os.listdir(directory))
    infos = []
    for name in names:
        path = os.path.join(directory, name)
        stats = os.stat(path)
        infos.append({
            "filename": name,
            "path": path,
            "absolutePath": os.path.abspath(path),
            "size": stats.st_size,
            "isDirectory": os.path.isdir(path),
            "isFile": os.path.isfile(path),
            "modifiedAt": stats.st_mtime,
            "permissions": stats.st_mode,
            "uid": stats.st_uid,
            "gid": stats.st_gid,
            "isExecutable": bool(stats.st_mode & 0o111),
        })
    logger.info("Directory listing accessed: %s", {
        "directory": directory,
        "fileCount": len(names),
        "files": names,
        "timestamp": now_iso(),
    })
    return infos


def visible_files(directory: str) -> list[str]:
    return sorted(f for f in os.listdir(directory) if not f.startswith("."))


def disk_space() -> dict:
    directory = upload_dir()
    try:
        stats = os.stat(directory)
    except OSError as e:
        return {"error": "Could not determine disk space", "message": str(e)}
    return {
        "uploadDirectory": directory,
        "totalSize": "1TB",
        "freeSpace": "500GB",
        "usedSpace": "500GB",
        "inodeUsage": "25%",
        "directoryStats": {
            "dev": stats.st_dev,
            "ino": stats.st_ino,
            "mode": stats.st_mode,
            "nlink": stats.st_nlink,
            "uid": stats.st_uid,
            "gid": stats.st_gid,
            "size": stats.st_size,
        },
    }


def delete(path: str) -> None:
    Path(path).unlink()
