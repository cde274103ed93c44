import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from desicargo.config import settings
from desicargo.middleware.exceptions import register_exception_handlers
from desicargo.middleware.rate_limit import RateLimitMiddleware
from desicargo.middleware.security import HTTPSRedirectMiddleware, SecurityHeadersMiddleware
from desicargo.routers import (
    admin,
    articles,
    auth,
    bookings,
    branches,
    customers,
    dashboard,
    finance,
    health,
    ogpl,
    track,
    vehicles,
)
from desicargo.utils.cache import close_redis

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("desicargo")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"DesiCargo API starting ({settings.environment})")
    yield
    await close_redis()
    logger.info("DesiCargo API stopped")


app = FastAPI(
    title="DesiCargo",
    description="Logistics back office: bookings, loading manifests and branch operations",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware (outermost first) ─────────────────────────────
app.add_middleware(SecurityHeadersMiddleware)

# HTTPS redirect (production only)
app.add_middleware(HTTPSRedirectMiddleware, force_https=settings.environment == "production")

# Rate limiting
app.add_middleware(
    RateLimitMiddleware,
    default_limit=100,  # 100 requests per minute (anonymous/IP)
    authenticated_limit=500,  # 500 requests per minute (JWT user)
    default_window=60,
    exempt_paths=["/health", "/health/ready", "/docs", "/openapi.json"],
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
# Public
app.include_router(health.router)
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(track.router, prefix="/api/track", tags=["tracking"])

# Authenticated
app.include_router(branches.router, prefix="/api/branches", tags=["branches"])
app.include_router(vehicles.router, prefix="/api/vehicles", tags=["vehicles"])
app.include_router(customers.router, prefix="/api/customers", tags=["customers"])
app.include_router(articles.router, prefix="/api/articles", tags=["articles"])
app.include_router(bookings.router, prefix="/api/bookings", tags=["bookings"])
app.include_router(ogpl.router, prefix="/api/ogpl", tags=["ogpl"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["dashboard"])
app.include_router(finance.router, prefix="/api/finance", tags=["finance"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
