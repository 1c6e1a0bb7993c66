import os

from dotenv import load_dotenv

load_dotenv()


def _csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


# ----- Auth -----
SECRET_KEY = os.getenv("JWT_SECRET", "CHANGE_THIS_SECRET_IN_REAL_PROJECT")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_DAYS = int(os.getenv("JWT_EXPIRE_DAYS", "15"))

# ----- Storage -----
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./scraply.db")

# ----- Upstream services -----
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash-lite")
GEMINI_TIMEOUT_SECONDS = float(os.getenv("GEMINI_TIMEOUT_SECONDS", "30"))

PREDICTION_SERVICE_URL = os.getenv(
    "PREDICTION_SERVICE_URL",
    "https://scraply-price-prediction-model.onrender.com",
).rstrip("/")
PREDICTION_TIMEOUT_SECONDS = float(os.getenv("PREDICTION_TIMEOUT_SECONDS", "30"))

# ----- HTTP -----
RATE_LIMIT = os.getenv("RATE_LIMIT", "60/minute")
CORS_ORIGINS = _csv(os.getenv("CORS_ORIGINS", "http://localhost:3000"))
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "8000"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
