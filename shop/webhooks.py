"""Inbound webhooks. Signatures are read and logged, never checked."""
import logging
import uuid
from collections import deque
from typing import Any, Mapping, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from . import config, sysinfo
from .db import execute_raw, query_rows
from .errors import stack_of
from .utils import now_iso, sql_assignments

logger = logging.getLogger(__name__)

DEFAULT_LOG_CAPACITY = 5000
REPLAYABLE = ("payment", "generic")


def update_user(db: Session, user_id, updates: Optional[Mapping[str, Any]]) -> dict:
    if not updates:
        raise ValueError("No updates provided")
    fields = ", ".join(sql_assignments(updates))
    query = f"UPDATE users SET {fields}, updatedAt = datetime('now') WHERE id = {user_id}"
    logger.info("Webhook user update: %s", {"query": query, "userId": user_id, "updates": updates})
    execute_raw(db, query)
    return {"userId": user_id, "updates": updates, "success": True}


def cancel_order(db: Session, order_id) -> dict:
    query = f"UPDATE orders SET status = 'cancelled', updatedAt = datetime('now') WHERE id = {order_id}"
    logger.info("Webhook order cancellation: %s", {"query": query, "orderId": order_id})
    execute_raw(db, query)
    return {"orderId": order_id, "status": "cancelled", "success": True}


def delete_product(db: Session, product_id) -> dict:
    query = f"DELETE FROM products WHERE id = {product_id}"
    logger.info("Webhook product deletion: %s", {"query": query, "productId": product_id})
    execute_raw(db, query)
    return {"productId": product_id, "deleted": True, "success": True}


def promote_user(db: Session, user_id) -> dict:
    query = f"UPDATE users SET isAdmin = 1, updatedAt = datetime('now') WHERE id = {user_id}"
    logger.info("User promoted to admin via webhook: %s", {"query": query, "userId": user_id})
    execute_raw(db, query)
    return {"userId": user_id, "isAdmin": True, "success": True}


def system_info() -> dict:
    return {
        "environment": config.get_settings().app_env,
        "uptime": sysinfo.uptime(),
        "memoryUsage": sysinfo.memory_usage(),
        "envVars": sysinfo.environment(),
        "database": config.env("DATABASE_URL"),
        "secrets": {
            "jwtSecret": config.env("JWT_SECRET"),
            "webhookSecret": config.env("PAYMENT_WEBHOOK_SECRET"),
            "adminPassword": config.env("ADMIN_PASSWORD"),
        },
    }


def database_query(db: Session, query: str) -> dict:
    logger.info("Executing SQL via webhook: %s", {"query": query, "timestamp": now_iso()})
    try:
        return {"query": query, "results": query_rows(db, query), "success": True}
    except Exception as e:
        return {"query": query, "error": str(e), "success": False}


def system_command(command: str) -> dict:
    # never executed, only reported back
    logger.warning("System command execution attempt via webhook: %s", {"command": command, "timestamp": now_iso()})
    return {
        "command": command,
        "executed": False,
        "message": "Command execution simulated for security",
        "warning": "This would be extremely dangerous in a real system",
    }


def sample_logs() -> list[dict]:
    return [
        {"id": "1", "type": "payment", "data": {"orderId": 123, "amount": 99.99, "status": "paid"}, "timestamp": now_iso()},
        {"id": "2", "type": "generic", "data": {"action": "user_update", "userId": 456}, "timestamp": now_iso()},
    ]


class WebhookReceiver:
    """Dispatches webhook actions and keeps a bounded log of invocations.

    One instance lives for the whole process (see ``main``); the log is
    lost on restart. Once ``capacity`` entries are stored the oldest ones
    are dropped.
    """

    def __init__(self, capacity: int = DEFAULT_LOG_CAPACITY):
        self.capacity = capacity
        self._log: deque = deque(maxlen=capacity)

    def __len__(self):
        return len(self._log)

    def record(self, entry: dict) -> dict:
        entry = {"id": uuid.uuid4().hex, "timestamp": now_iso(), **entry}
        self._log.append(entry)
        return entry

    def logs(self, limit: int = 100) -> list[dict]:
        """Newest first. A negative limit skips that many of the oldest entries."""
        return list(self._log)[-limit:][::-1]

    def find(self, webhook_id: str) -> Optional[dict]:
        return next((e for e in self._log if e["id"] == webhook_id), None)

    def process_payment(self, db: Session, data: dict, signature: Optional[str] = None, provider: Optional[str] = None) -> dict:
        logger.info("Processing payment webhook: %s", {
            "data": data,
            "signature": signature,
            "provider": provider,
            "timestamp": now_iso(),
        })
        order_id = data.get("orderId")
        status = data.get("status")
        try:
            query = f"UPDATE orders SET status = '{status}', updatedAt = datetime('now') WHERE id = {order_id}"
            logger.info("Updating order status via webhook: %s", {
                "query": query,
                "orderId": order_id,
                "amount": data.get("amount"),
                "status": status,
                "transactionId": data.get("transactionId"),
            })
            execute_raw(db, query)
        except Exception as e:
            self.record({"type": "payment_error", "data": data, "error": str(e), "stack": stack_of(e)})
            raise
        self.record({"type": "payment", "provider": provider, "data": data, "signature": signature, "processed": True})
        return {
            "orderId": order_id,
            "amount": data.get("amount"),
            "status": status,
            "transactionId": data.get("transactionId"),
            "processed": True,
        }

    def process_generic(self, db: Session, data: dict, headers: Mapping[str, str]) -> dict:
        logger.info("Processing generic webhook: %s", {"data": data, "headers": dict(headers), "timestamp": now_iso()})
        self.record({"type": "generic", "data": data, "headers": dict(headers), "processed": True})
        action = data.get("action")
        if action == "user_update":
            return update_user(db, data.get("userId"), data.get("updates"))
        if action == "order_cancel":
            return cancel_order(db, data.get("orderId"))
        if action == "system_command":
            return system_command(data.get("command"))
        if action:
            logger.info("Unknown webhook action: %s", action)
        return {"processed": True, "action": action}

    def run_test_action(self, db: Session, action: str, target: Optional[str] = None, data: Any = None) -> dict:
        logger.info("Executing test webhook action: %s", {"action": action, "target": target, "data": data})
        target = target or ""
        if action == "user_update":
            return update_user(db, target, data)
        if action == "order_cancel":
            return cancel_order(db, target)
        if action == "product_delete":
            return delete_product(db, target)
        if action == "admin_promote":
            return promote_user(db, target)
        if action == "system_info":
            return system_info()
        if action == "database_query":
            return database_query(db, (data or {}).get("query"))
        raise ValueError(f"Unknown test action: {action}")

    def replay(self, db: Session, webhook_id: str, modifications: Optional[dict] = None) -> dict:
        original = self.find(webhook_id)
        if not original:
            raise LookupError(f"Webhook {webhook_id} not found")
        replay_data = {**original["data"], **modifications} if modifications else original["data"]
        logger.info("Replaying webhook: %s", {
            "originalWebhookId": webhook_id,
            "originalData": original["data"],
            "replayData": replay_data,
            "modifications": modifications,
        })
        if original["type"] not in REPLAYABLE:
            raise ValueError(f"Cannot replay webhook of type: {original['type']}")
        if original["type"] == "payment":
            return self.process_payment(db, replay_data)
        return self.process_generic(db, replay_data, {})

    def status(self) -> dict:
        return {
            "webhookProcessor": "running",
            "lastWebhookReceived": self._log[-1]["timestamp"] if self._log else None,
            "totalWebhooksProcessed": len(self._log),
            "logCapacity": self.capacity,
            "queueStatus": "no-queue-system",
            "errorRate": "0%",
            "avgProcessingTime": "50ms",
            "securityStatus": {
                "signatureVerification": "disabled",
                "ipWhitelist": "disabled",
                "rateLimit": "disabled",
                "authentication": "disabled",
            },
        }


def get_webhooks(request: Request) -> WebhookReceiver:
    return request.app.state.webhooks
