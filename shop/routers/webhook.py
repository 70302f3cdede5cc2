import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Header, Request, status
from sqlalchemy.orm import Session

from .. import config, schemas, sysinfo
from ..db import get_db
from ..errors import failure
from ..utils import now_iso, parse_int
from ..webhooks import WebhookReceiver, get_webhooks, sample_logs

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["Webhooks"])

TEST_SECRET = "test123"
LOGS_SECRET = "logs123"


@router.post("/payment-notification", status_code=status.HTTP_201_CREATED)
async def payment_notification(
    request: Request,
    body: dict[str, Any] = Body(default_factory=dict),
    x_payment_signature: Optional[str] = Header(None),
    x_payment_provider: Optional[str] = Header(None),
    webhooks: WebhookReceiver = Depends(get_webhooks),
    db: Session = Depends(get_db),
):
    logger.info("Payment webhook received: %s", {
        "body": body,
        "signature": x_payment_signature,
        "provider": x_payment_provider,
        "ip": request.client.host if request.client else None,
        "userAgent": request.headers.get("user-agent"),
        "timestamp": now_iso(),
    })
    try:
        result = webhooks.process_payment(db, body, x_payment_signature, x_payment_provider)
    except Exception as e:
        return failure(
            e,
            always_stack=True,
            receivedData=body,
            signature=x_payment_signature,
            provider=x_payment_provider,
        )
    return {
        "success": True,
        "message": "Payment notification processed",
        "data": result,
        "processing": {
            "signature": x_payment_signature,
            "provider": x_payment_provider,
            "verified": False,
            "processed": True,
            "timestamp": now_iso(),
        },
        "internal": {
            "webhookSecret": config.env("PAYMENT_WEBHOOK_SECRET"),
            "expectedSignature": "not-calculated",
            "securityCheck": "SKIPPED",
        },
    }


@router.post("/generic", status_code=status.HTTP_201_CREATED)
async def generic(
    request: Request,
    body: dict[str, Any] = Body(default_factory=dict),
    webhooks: WebhookReceiver = Depends(get_webhooks),
    db: Session = Depends(get_db),
):
    headers = dict(request.headers)
    logger.info("Generic webhook received: %s", {
        "body": body,
        "headers": headers,
        "ip": request.client.host if request.client else None,
        "method": request.method,
        "url": str(request.url),
    })
    try:
        result = webhooks.process_generic(db, body, headers)
    except Exception as e:
        return failure(e, receivedBody=body, receivedHeaders=headers)
    return {
        "success": True,
        "message": "Generic webhook processed",
        "data": result,
        "received": {"body": body, "headers": headers, "processedAt": now_iso()},
    }


@router.post("/test", status_code=status.HTTP_201_CREATED)
async def test_action(
    body: schemas.WebhookTestIn,
    webhooks: WebhookReceiver = Depends(get_webhooks),
    db: Session = Depends(get_db),
):
    if body.secret != TEST_SECRET:
        logger.warning("Test webhook with wrong secret: %s", {
            "providedSecret": body.secret,
            "expectedSecret": TEST_SECRET,
            "action": body.action,
            "target": body.target,
        })
    try:
        result = webhooks.run_test_action(db, body.action, body.target, body.data)
    except Exception as e:
        return failure(e, action=body.action, target=body.target, data=body.data)
    return {
        "success": True,
        "message": "Test webhook executed",
        "action": body.action,
        "target": body.target,
        "result": result,
        "timestamp": now_iso(),
    }


@router.get("/logs")
async def logs(
    secret: Optional[str] = None,
    limit: Optional[str] = None,
    webhooks: WebhookReceiver = Depends(get_webhooks),
):
    if secret != LOGS_SECRET:
        return {"success": False, "message": "Invalid secret for webhook logs", "sampleLogs": sample_logs()}
    entries = webhooks.logs(parse_int(limit or "100") or 100)
    return {
        "success": True,
        "logs": entries,
        "count": len(entries),
        "logInfo": {"totalLogsAvailable": "unlimited", "logLevel": "debug", "rotationPolicy": "none"},
    }


@router.post("/replay/{webhook_id}", status_code=status.HTTP_201_CREATED)
async def replay(
    webhook_id: str,
    body: Optional[schemas.WebhookReplayIn] = None,
    webhooks: WebhookReceiver = Depends(get_webhooks),
    db: Session = Depends(get_db),
):
    body = body or schemas.WebhookReplayIn()
    target_id = body.webhook_id or webhook_id
    try:
        result = webhooks.replay(db, target_id, body.modifications)
    except Exception as e:
        return failure(e, webhookId=target_id, modifications=body.modifications)
    logger.info("Webhook replay executed: %s", {
        "webhookId": target_id,
        "modifications": body.modifications,
        "result": result,
        "timestamp": now_iso(),
    })
    return {
        "success": True,
        "message": "Webhook replayed successfully",
        "originalWebhookId": target_id,
        "modifications": body.modifications,
        "replayResult": result,
    }


@router.get("/status")
async def webhook_status(webhooks: WebhookReceiver = Depends(get_webhooks)):
    return {
        "success": True,
        "status": webhooks.status(),
        "configuration": {
            "webhookSecret": config.env("PAYMENT_WEBHOOK_SECRET"),
            "providers": ["stripe", "paypal", "square"],
            "endpoints": ["/webhook/payment-notification", "/webhook/generic", "/webhook/test"],
        },
        "systemInfo": {
            "environment": config.env("APP_ENV"),
            "webhookProcessorVersion": "1.0.0",
            "lastRestart": now_iso(),
            "memoryUsage": sysinfo.memory_usage(),
        },
    }
