# posstore/config.py
import os

HOST = os.environ.get("POS_HOST", "0.0.0.0")
PORT = int(os.environ.get("POS_PORT", "8085"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()]

# Simulated storage round trip; 0 still yields to the event loop
STORE_LATENCY_SECONDS = float(os.environ.get("STORE_LATENCY_SECONDS", "0"))

DEFAULT_MIN_STOCK = int(os.environ.get("DEFAULT_MIN_STOCK", "5"))
SALES_PAGE_LIMIT = int(os.environ.get("SALES_PAGE_LIMIT", "100"))
