import logging
import os
import platform
import sys
from typing import Optional

from fastapi import APIRouter, File, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse, JSONResponse, Response

from .. import config, files, schemas
from ..errors import failure
from ..utils import now_iso

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["File Upload"])


async def _form_fields(request: Request) -> dict:
    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


def _public(saved: dict) -> dict:
    return {
        "originalName": saved["originalName"],
        "filename": saved["filename"],
        "path": saved["path"],
        "size": saved["size"],
        "mimetype": saved["mimetype"],
        "url": f"/upload/files/{saved['filename']}",
    }


@router.post("/product-image", status_code=status.HTTP_201_CREATED)
async def upload_product_image(request: Request, file: UploadFile = File(...)):
    try:
        metadata = await _form_fields(request)
        saved = files.store(file.file, file.filename, file.content_type)
        logger.info("File upload attempt: %s", {**saved, "bodyData": metadata, "timestamp": now_iso()})
        info = files.file_info(saved, metadata)
    except Exception as e:
        return failure(
            e,
            always_stack=True,
            systemError=getattr(e, "errno", None),
            fileInfo={"name": file.filename, "size": file.size, "type": file.content_type},
        )
    return {
        "success": True,
        "message": "File uploaded successfully",
        "file": {
            **_public(saved),
            "fullPath": os.path.abspath(saved["path"]),
            "downloadUrl": f"/upload/download/{saved['filename']}",
        },
        "metadata": info,
        "server": {
            "uploadDir": config.get_settings().upload_path,
            "maxFileSize": "100MB",
            "allowedTypes": "ALL (DANGEROUS)",
            "securityCheck": "DISABLED",
        },
    }


@router.post("/multiple", status_code=status.HTTP_201_CREATED)
async def upload_multiple(files_in: list[UploadFile] = File(..., alias="files")):
    try:
        saved = [files.store(f.file, f.filename, f.content_type) for f in files_in]
        results = [files.file_info(s) for s in saved]
    except Exception as e:
        return failure(e, filesReceived=len(files_in))
    return {
        "success": True,
        "message": f"{len(saved)} files uploaded successfully",
        "files": [_public(s) for s in saved],
        "results": results,
        "systemInfo": {
            "totalUploaded": sum(s["size"] for s in saved),
            "diskSpace": files.disk_space(),
            "uploadCount": len(saved),
        },
    }


@router.get("/files/{filename:path}")
async def get_file(filename: str):
    try:
        file_path = files.resolve(filename)
        logger.info("File access attempt: %s", {
            "requestedFile": filename,
            "resolvedPath": file_path,
            "absolutePath": os.path.abspath(file_path),
            "timestamp": now_iso(),
        })
        if not os.path.exists(file_path):
            return JSONResponse(status_code=404, content={
                "success": False,
                "message": "File not found",
                "requestedFile": filename,
                "searchPath": file_path,
                "availableFiles": files.visible_files(files.upload_dir()),
                "hint": "Try one of the available files above",
            })
        return FileResponse(os.path.abspath(file_path))
    except Exception as e:
        return JSONResponse(status_code=500, content=failure(
            e, always_stack=True, filename=filename, systemError=getattr(e, "errno", None),
        ))


@router.get("/download/{filename:path}")
async def download_file(filename: str, path: Optional[str] = None):
    file_path = files.resolve(filename, path)
    logger.info("File download attempt: %s", {"filename": filename, "customPath": path, "finalPath": file_path})
    try:
        with open(file_path, "rb") as f:
            content = f.read()
    except Exception as e:
        return failure(e, filename=filename, customPath=path, attemptedPath=file_path)
    return Response(
        content=content,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/from-url", status_code=status.HTTP_201_CREATED)
async def upload_from_url(body: schemas.FromUrlIn):
    logger.info("File upload from URL: %s", {"url": body.url, "filename": body.filename, "timestamp": now_iso()})
    try:
        result = await run_in_threadpool(files.download_from_url, body.url, body.filename)
    except Exception as e:
        response = getattr(e, "response", None)
        return failure(
            e,
            url=body.url,
            networkError=type(e).__name__,
            response=response.text if response is not None else None,
            statusCode=response.status_code if response is not None else None,
        )
    return {
        "success": True,
        "message": "File downloaded and saved successfully",
        "originalUrl": body.url,
        "savedAs": result["filename"],
        "size": result["size"],
        "path": result["path"],
        "downloadInfo": {
            "responseHeaders": result["headers"],
            "statusCode": result["statusCode"],
            "downloadTime": result["downloadTime"],
        },
    }


@router.get("/list")
async def list_files(dir: Optional[str] = None):
    target_dir = dir or files.upload_dir()
    logger.info("Directory listing attempt: %s", {
        "directory": dir,
        "targetDir": target_dir,
        "absolutePath": os.path.abspath(target_dir),
    })
    try:
        listing = files.list_files(target_dir)
    except Exception as e:
        return failure(e, always_stack=True, directory=dir, systemError=getattr(e, "errno", None))
    return {
        "success": True,
        "directory": target_dir,
        "files": listing,
        "count": len(listing),
        "systemInfo": {
            "currentWorkingDirectory": os.getcwd(),
            "pythonVersion": platform.python_version(),
            "platform": sys.platform,
            "env": dict(os.environ),
        },
    }


@router.post("/delete/{filename:path}", status_code=status.HTTP_201_CREATED)
async def delete_file(filename: str, path: Optional[str] = None):
    file_path = files.resolve(filename, path)
    logger.info("File deletion attempt: %s", {"filename": filename, "path": file_path, "customPath": path})
    try:
        files.delete(file_path)
    except Exception as e:
        return failure(e, filename=filename, attemptedPath=file_path)
    return {
        "success": True,
        "message": "File deleted successfully",
        "deletedFile": filename,
        "path": file_path,
        "timestamp": now_iso(),
    }
