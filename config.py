import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Environment configuration
ENV = os.getenv("LUCO_ENV", "p").lower()
if ENV not in ["d", "p"]:
    raise ValueError("LUCO_ENV must be either 'd' (development) or 'p' (production)")

# API Keys
AUTH_JWT_KEY = os.getenv("LUCO_AUTH_JWT_KEY")
if not AUTH_JWT_KEY:
    raise ValueError("LUCO_AUTH_JWT_KEY environment variable is not set")

# NOTE: The assistant endpoints are disabled when no Hugging Face key is configured
HF_API_KEY = os.getenv("LUCO_HF_API_KEY")
HF_MODEL_ID = os.getenv("LUCO_HF_MODEL_ID", "meta-llama/Llama-3.1-8B-Instruct")

# Admin dashboard credentials (bcrypt hash of the admin password)
ADMIN_USERNAME = os.getenv("LUCO_ADMIN_USERNAME", "admin")
ADMIN_PASSWORD_HASH = os.getenv("LUCO_ADMIN_PASSWORD_HASH")

# Firestore
FIRESTORE_DATABASE = os.getenv("LUCO_FIRESTORE_DATABASE", "(default)")

# Mobile money provider
PAYMENT_API_BASE_URL = os.getenv(
    "LUCO_PAYMENT_API_BASE_URL", "https://lucopay.onrender.com"
).rstrip("/")
PAYMENT_REFERENCE_PREFIX = os.getenv("LUCO_PAYMENT_REFERENCE_PREFIX", "FS")
PAYMENT_POLL_INTERVAL_SECONDS = float(os.getenv("LUCO_PAYMENT_POLL_INTERVAL", "2"))
PAYMENT_HTTP_TIMEOUT_SECONDS = float(os.getenv("LUCO_PAYMENT_HTTP_TIMEOUT", "30"))

# Idle purchase flows are dropped after this long (flows still polling are kept)
PURCHASE_FLOW_TTL_SECONDS = float(os.getenv("LUCO_PURCHASE_FLOW_TTL", "1800"))

# Phone numbers without a country code are assumed to be Ugandan
PHONE_COUNTRY_CODE = os.getenv("LUCO_PHONE_COUNTRY_CODE", "256")

# Allowed CORS origins, comma separated
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "LUCO_CORS_ORIGINS", "http://localhost:3000,http://localhost:9002"
    ).split(",")
    if origin.strip()
]

# Project root directory
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
