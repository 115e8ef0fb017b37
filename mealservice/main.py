"""
Meal subscription and ordering service - FastAPI application
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mealservice import __version__
from mealservice.api import admin, auth, customer, payments, wallet
from mealservice.core.config import settings
from mealservice.core.database import create_tables

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    create_tables()
    logger.info("Database tables ready")
    yield

# Create FastAPI app
app = FastAPI(
    title="Meal Service API",
    description="Meal subscriptions, one-time orders, checkout and admin API",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(customer.router)
app.include_router(payments.router)
app.include_router(wallet.router)
app.include_router(admin.router)

# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "mealservice-api"}

# API version info
@app.get("/")
async def root():
    """API root endpoint"""
    return {
        "message": "Meal Service API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("mealservice.main:app", host="0.0.0.0", port=8000, reload=True)
