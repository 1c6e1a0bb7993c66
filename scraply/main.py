import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.middleware import SlowAPIMiddleware
from slowapi.errors import RateLimitExceeded

import uvicorn

from .config import CORS_ORIGINS, HOST, LOG_LEVEL, PORT, RATE_LIMIT
from .database import Base, engine
from .routers import auth, users, bookings, facilities, blogs, popups, chat, predictions
from .error_handlers import error_body, register_exception_handlers

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# -----------------------------------------
# Create DB tables
# -----------------------------------------
Base.metadata.create_all(bind=engine)

# -----------------------------------------
# Rate Limiter
# RATE_LIMIT requests per client IP, applied to every route
# -----------------------------------------
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[RATE_LIMIT],
)

app = FastAPI(
    title="Scraply E-Waste Management API",
    version="0.1.0",
    description="Recycling facilities, pickup bookings, blog, popups, AI assistant and price prediction.",
)

# Attach limiter to app and add middleware
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------------------------
# Global exception handlers
# -----------------------------------------
register_exception_handlers(app)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content=error_body(request, "Rate limit exceeded. Please try again later.", "too_many_requests"),
    )


# -----------------------------------------
# Routers (normal + versioned /api/v1)
# -----------------------------------------
ROUTERS = (auth, users, bookings, facilities, blogs, popups, chat, predictions)

for module in ROUTERS:
    app.include_router(module.router)

# Versioned API (v1)
for module in ROUTERS:
    app.include_router(module.router, prefix="/api/v1")


# -----------------------------------------
# Health check endpoint
# -----------------------------------------
@app.get("/health", tags=["health"])
def health_check():
    return {"success": True, "message": "Service is healthy", "data": {"status": "ok"}}


logger.info("Scraply API ready; routes mounted at / and /api/v1")


def run():
    """Serve the API with uvicorn (the ``scraply`` console script)."""
    uvicorn.run(app, host=HOST, port=PORT, log_level=LOG_LEVEL.lower())
