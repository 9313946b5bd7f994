from datetime import timedelta
import os
from dotenv import load_dotenv

load_dotenv()


def _optional_float(value):
    return float(value) if value else None


class Config:
    BACKEND_API_URL = os.environ.get("BACKEND_API_URL", "http://localhost:5000/api")
    # unset means the transport default (no client-side timeout)
    REQUEST_TIMEOUT = _optional_float(os.environ.get("REQUEST_TIMEOUT"))

    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=24)

    CHECKOUT_REDIRECT_DELAY_MS = 2000
    CART_MESSAGE_TTL_MS = 3000
    BUY_NOW_MAX_QUANTITY = 5

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    SWAGGER = {
        "title": "Marketplace Client API",
        "uiversion": 3,
    }


class TestConfig(Config):
    TESTING = True
    BACKEND_API_URL = "http://backend.test/api"
    JWT_SECRET_KEY = "test-secret-key-with-enough-length-for-hs256"
    LOG_LEVEL = "DEBUG"
