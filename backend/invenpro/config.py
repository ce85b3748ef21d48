# backend/invenpro/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/invenpro.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///invenpro.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Feature gates (checked in addition to the login session)
    BILLING_PIN = os.environ.get("BILLING_PIN", "0000")
    ADJUSTMENT_PIN = os.environ.get("ADJUSTMENT_PIN", "0000")
    ANALYTICS_PIN = os.environ.get("ANALYTICS_PIN", "2222")

    # Prefix for the durable snapshot keys (invenpro_products, invenpro_docs, ...)
    STORAGE_NAMESPACE = os.environ.get("STORAGE_NAMESPACE", "invenpro")

    DEFAULT_TAX_RATE_BPS = int(os.environ.get("DEFAULT_TAX_RATE_BPS", "1800"))
    DEFAULT_WAREHOUSE_ID = os.environ.get("DEFAULT_WAREHOUSE_ID", "WH-001")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    SEED_PARTNERS_ENABLED = True
