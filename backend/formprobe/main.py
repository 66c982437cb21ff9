"""
FastAPI application for HTML form field detection.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from datetime import datetime
import logging

from formprobe.config import Config
from formprobe.models import HealthResponse, RateLimitStatus
from formprobe.routes import form_analysis
from formprobe.utils.rate_limiter import RateLimiter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Form Field Detection API",
    description="API for detecting and classifying the fields of HTML forms",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize rate limiter (shared by the inference and refinement clients)
rate_limiter = RateLimiter(max_total_calls=Config.MAX_TOTAL_CALLS)
form_analysis.set_rate_limiter(rate_limiter)

app.include_router(form_analysis.router)


@app.on_event("startup")
async def startup_event():
    """Validate configuration on startup."""
    try:
        Config.validate()
        logger.info("Configuration validated successfully")
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        raise


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(),
        inference_configured=Config.has_inference_credentials()
    )


@app.get("/api/rate-limit/status", response_model=RateLimitStatus)
async def get_rate_limit_status():
    """Get current rate limit status."""
    stats = rate_limiter.get_stats()
    return RateLimitStatus(
        total_calls=stats['total_calls'],
        max_calls=stats['max_calls'],
        remaining_calls=stats['remaining_calls'],
        calls_by_service=stats['calls_by_service']
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "formprobe.main:app",
        host=Config.API_HOST,
        port=Config.API_PORT,
        reload=True
    )
