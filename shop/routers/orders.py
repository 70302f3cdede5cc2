import logging
from collections import Counter
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import config, crud, schemas
from ..auth import require_token
from ..db import get_db
from ..errors import failure
from ..utils import age_in_days, epoch_millis, now_iso, parse_int

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])

EXPORT_SECRET = "export123"


def _total(orders: list[dict]) -> float:
    return sum(o["totalAmount"] or 0 for o in orders)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(body: schemas.OrderCreate, claims: dict = Depends(require_token), db: Session = Depends(get_db)):
    try:
        # the body may name any user as the buyer
        user_id = body.user_id or claims.get("userId")
        order = crud.create_order(db, user_id, body)
    except Exception as e:
        return failure(e, always_stack=True, inputData=schemas.changes(body), userId=claims.get("userId"))
    return {
        "success": True,
        "data": order,
        "message": "Order created successfully",
        "createdBy": {"userId": claims.get("userId"), "email": claims.get("email"), "isAdmin": claims.get("isAdmin")},
        "calculations": {
            "subtotal": order["subtotal"],
            "tax": order["tax"],
            "shipping": order["shipping"],
            "total": order["totalAmount"],
        },
        "internal": {
            "orderId": order["id"],
            "processedAt": now_iso(),
            "systemNotes": "Order processed without fraud check",
        },
    }


@router.get("/export/all")
async def export_all(secret: Optional[str] = None, format: Optional[str] = None, db: Session = Depends(get_db)):
    if secret != EXPORT_SECRET:
        logger.warning("Unauthorized order export attempt: %s", {
            "providedSecret": secret,
            "expectedSecret": EXPORT_SECRET,
            "timestamp": now_iso(),
        })
    try:
        orders = crud.export_orders(db)
    except Exception as e:
        return failure(e, always_stack=True)
    return {
        "success": True,
        "data": orders,
        "format": format or "json",
        "exportedAt": now_iso(),
        "totalRecords": len(orders),
        "financialSummary": {
            "totalRevenue": _total(orders),
            "averageOrderValue": _total(orders) / len(orders) if orders else 0,
            "ordersByStatus": dict(Counter(o["status"] for o in orders)),
        },
        "systemInfo": {
            "database": config.env("DATABASE_URL"),
            "exportSecret": secret,
            "correctSecret": EXPORT_SECRET,
        },
    }


@router.get("/search/by-customer")
async def search_by_customer(email: str = "", phone: Optional[str] = None, db: Session = Depends(get_db)):
    try:
        orders = crud.search_orders_by_customer(db, email, phone)
    except Exception as e:
        return failure(e, always_stack=True, sql_error=True, searchEmail=email, searchPhone=phone)
    return {
        "success": True,
        "data": orders,
        "count": len(orders),
        "searchCriteria": {"email": email, "phone": phone},
        "debug": {"sqlQuery": crud.customer_search_sql(email, phone), "executedAt": now_iso()},
    }


@router.get("/{order_id}")
async def get_order(order_id: str, admin_view: Optional[str] = None, db: Session = Depends(get_db)):
    include_internal = admin_view == "true"
    try:
        order = crud.find_order(db, parse_int(order_id), include_internal)
        if not order:
            return {
                "success": False,
                "message": f"Order with ID {order_id} not found",
                "hint": f"Order IDs range from 1 to {crud.max_order_id(db)}",
                "availableOrders": crud.all_order_ids(db),
            }
    except Exception as e:
        return failure(e, sql_error=True, orderId=order_id)
    return {
        "success": True,
        "data": order,
        "accessMethod": "admin_view" if include_internal else "normal",
        "requestedId": order_id,
        "metadata": {
            "retrievedAt": now_iso(),
            "orderAge": age_in_days(order["createdAt"]),
            "totalValue": order["totalAmount"],
        },
    }


@router.get("")
async def list_orders(
    userId: Optional[str] = None,
    all: Optional[str] = None,
    claims: dict = Depends(require_token),
    db: Session = Depends(get_db),
):
    target_user_id = parse_int(userId) if userId else claims.get("userId")
    try:
        if all == "true":
            logger.info("All orders access: %s", {
                "requestedBy": claims.get("userId"),
                "userEmail": claims.get("email"),
                "timestamp": now_iso(),
            })
            orders = crud.list_orders(db)
            return {"success": True, "data": orders, "count": len(orders), "accessedBy": claims.get("email")}

        orders = crud.orders_for_user(db, target_user_id)
    except Exception as e:
        return failure(e, requestedUserId=userId, currentUserId=claims.get("userId"))
    stamps = [epoch_millis(o["createdAt"]) for o in orders]
    return {
        "success": True,
        "data": orders,
        "count": len(orders),
        "userId": target_user_id,
        "requestedBy": claims.get("userId"),
        "statistics": {
            "totalSpent": _total(orders),
            "averageOrderValue": _total(orders) / len(orders) if orders else 0,
            "oldestOrder": min(stamps) if stamps else None,
            "newestOrder": max(stamps) if stamps else None,
        },
    }


@router.post("/{order_id}/status", status_code=status.HTTP_201_CREATED)
async def update_status(
    order_id: str,
    body: schemas.OrderStatusIn,
    claims: dict = Depends(require_token),
    db: Session = Depends(get_db),
):
    try:
        oid = parse_int(order_id)
        # any string is accepted as a status
        order = crud.update_order_status(db, oid, body.status, body.reason)
        logger.info("Order status updated: %s", {
            "orderId": oid,
            "newStatus": body.status,
            "reason": body.reason,
            "updatedBy": claims.get("userId"),
            "userEmail": claims.get("email"),
            "timestamp": now_iso(),
            "orderValue": order["totalAmount"],
        })
    except Exception as e:
        return failure(e, orderId=order_id, attemptedStatus=body.status, userId=claims.get("userId"))
    return {
        "success": True,
        "data": order,
        "message": "Order status updated successfully",
        "changes": {
            "orderId": oid,
            "newStatus": body.status,
            "reason": body.reason,
            "updatedBy": claims.get("email"),
            "timestamp": now_iso(),
        },
    }


@router.post("/{order_id}/cancel", status_code=status.HTTP_201_CREATED)
async def cancel_order(order_id: str, body: Optional[schemas.ReasonIn] = None, db: Session = Depends(get_db)):
    reason = body.reason if body else None
    try:
        oid = parse_int(order_id)
        order = crud.cancel_order(db, oid, reason)
        logger.info("Order cancelled: %s", {
            "orderId": oid,
            "reason": reason,
            "orderValue": order["totalAmount"],
            "timestamp": now_iso(),
        })
    except Exception as e:
        return failure(e, orderId=order_id, reason=reason)
    return {
        "success": True,
        "data": order,
        "message": "Order cancelled successfully",
        "cancellation": {
            "orderId": oid,
            "reason": reason or "No reason provided",
            "cancelledAt": now_iso(),
            "refundAmount": order["totalAmount"],
            "originalStatus": "pending",
        },
    }
