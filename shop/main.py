import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config
from .db import Base, engine
from .routers import admin, auth, orders, products, system, upload, users, webhook
from .webhooks import WebhookReceiver

logging.basicConfig(
    level=config.get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create tables if not existing (for demo).
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Vulnerable Shop API",
    description="Deliberately insecure e-commerce API for security training",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# shared by every request for the life of the process
app.state.webhooks = WebhookReceiver()

for module in (auth, users, products, orders, admin, webhook, upload, system):
    app.include_router(module.router)

logger.info("Shop API ready: %s", {
    "environment": config.get_settings().app_env,
    "database": config.get_settings().database_url,
    "jwtSecret": config.get_settings().jwt_secret,
})
