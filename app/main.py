from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from app.core.config import settings
from app.core.startup import startup_event
from app.api.recipes import recipes_router
from app.api.status import status_router
from app.middleware.error_handlers import register_exception_handlers
from app.middleware.rate_limit import limiter, rate_limit_exceeded_handler, create_rate_limit_middleware
from app.middleware.request_limits import create_request_limit_middleware

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='[%(asctime)s] [%(levelname)s] [%(name)s] - %(message)s'
)
logging.getLogger("httpx").setLevel(logging.WARNING)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Any failure here aborts startup: no governance store, no traffic
    await startup_event()
    yield

app = FastAPI(
    title="Recipe Cleaner API",
    description="Turns recipe webpages, cookbook photos and cooking videos into clean recipes",
    version="1.0.0",
    lifespan=lifespan
)

# Rate limiting state is always attached so route decorators can find it
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
register_exception_handlers(app)

# Add request size limiting middleware
app.add_middleware(create_request_limit_middleware())

# Add rate limiting middleware if enabled
rate_limit_middleware = create_rate_limit_middleware()
if rate_limit_middleware:
    app.add_middleware(rate_limit_middleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "X-Requested-With"],
)

app.include_router(recipes_router, prefix="/api/recipe", tags=["recipe"])
app.include_router(status_router, prefix="/api/status", tags=["status"])

@app.get("/")
async def root():
    return {"message": "Recipe Cleaner API"}

@app.get("/health")
async def health_check():
    return {"status": "healthy"}
