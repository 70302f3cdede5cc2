import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from .. import config, crud, schemas
from ..auth import require_admin
from ..db import get_db
from ..errors import failure
from ..utils import now_iso

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])

PRODUCT_COLUMNS = [
    "id", "name", "description", "price", "stock", "imageUrl",
    "category", "isActive", "createdAt", "updatedAt",
]


@router.get("")
async def list_products(db: Session = Depends(get_db)):
    try:
        products = [schemas.dump(schemas.ProductRecord.model_validate(p)) for p in crud.list_products(db)]
    except Exception as e:
        return failure(e, always_stack=True, sql_error=True)
    return {
        "success": True,
        "data": products,
        "count": len(products),
        "metadata": {
            "query": "SELECT * FROM products",
            "executedAt": now_iso(),
            "server": config.get_settings().app_env,
        },
    }


@router.get("/search")
async def search(
    q: str = "",
    category: Optional[str] = None,
    minPrice: Optional[str] = None,
    maxPrice: Optional[str] = None,
    db: Session = Depends(get_db),
):
    try:
        results = crud.search_products(db, q, category, minPrice, maxPrice)
    except Exception as e:
        return failure(e, sql_error=True, query=q, hint="Try different search terms")
    return {
        "success": True,
        "data": results,
        "count": len(results),
        "debug": {
            "searchQuery": q,
            "sqlQuery": f"SELECT * FROM products WHERE name LIKE '%{q}%' OR description LIKE '%{q}%'",
            "category": category,
            "priceRange": {"min": minPrice, "max": maxPrice},
            "executedAt": now_iso(),
        },
    }


@router.get("/internal/dump")
async def internal_dump(format: Optional[str] = None, db: Session = Depends(get_db)):
    return {
        "success": True,
        "data": crud.products_with_internal_data(db),
        "schema": {
            "table": "products",
            "columns": PRODUCT_COLUMNS,
            "primaryKey": "id",
            "database": config.env("DATABASE_URL"),
        },
        "exportedAt": now_iso(),
        "format": format or "json",
    }


@router.get("/{product_id}")
async def get_product(product_id: str, db: Session = Depends(get_db)):
    try:
        product = crud.find_product(db, product_id)
        if not product:
            return {
                "success": False,
                "message": f"Product with ID {product_id} not found",
                "availableIds": crud.all_product_ids(db),
                "suggestion": "Try one of the available IDs above",
            }
    except Exception as e:
        return failure(e, providedId=product_id, errorType=type(e).__name__)
    return {
        "success": True,
        "data": product,
        "metadata": {"lastUpdated": product["updatedAt"], "internalId": product["id"], "createdBy": "system"},
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(body: schemas.ProductCreate, claims: dict = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        product = crud.create_product(db, body)
    except Exception as e:
        return failure(e, inputData=schemas.changes(body), constraint=None)
    logger.info("Product created by admin: %s", {
        "productId": product["id"] if product else None,
        "adminId": claims.get("userId"),
        "adminEmail": claims.get("email"),
        "productData": schemas.changes(body),
        "timestamp": now_iso(),
    })
    return {
        "success": True,
        "data": product,
        "message": "Product created successfully",
        "createdBy": {"id": claims.get("userId"), "email": claims.get("email"), "username": claims.get("username")},
    }


@router.put("/{product_id}")
async def update_product(
    product_id: str,
    body: schemas.ProductUpdate,
    claims: dict = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        product = crud.update_product(db, product_id, crud.product_fields(body))
    except Exception as e:
        return failure(e, productId=product_id, attemptedChanges=schemas.changes(body))
    return {
        "success": True,
        "data": product,
        "message": "Product updated successfully",
        "updatedBy": claims.get("email"),
        "changes": schemas.changes(body),
    }


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    request: Request,
    claims: dict = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        crud.delete_product(db, product_id)
    except Exception as e:
        return failure(e, productId=product_id, existed="not found" not in str(e))
    logger.info("Product deleted: %s", {
        "productId": product_id,
        "deletedBy": claims.get("email"),
        "timestamp": now_iso(),
        "userAgent": request.headers.get("user-agent"),
        "ip": request.client.host if request.client else None,
    })
    return {
        "success": True,
        "message": "Product deleted successfully",
        "deletedId": product_id,
        "deletedBy": claims.get("email"),
    }
