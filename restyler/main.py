from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import restyle
from .config import settings
from .utils.logger import logger

logger.info(f"Starting {settings.app_name} v{settings.app_version}")

app = FastAPI(
    title=settings.app_name,
    description="AI room restyling API",
    version=settings.app_version,
    debug=settings.debug
)

# CORS (from settings)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger.info(f"CORS enabled for origins: {settings.cors_origins}")

app.include_router(restyle.router)


@app.get("/health")
async def health_check():
    """Health check and configuration summary"""
    return {
        "status": "healthy",
        "version": settings.app_version,
        "replicate_api_token_configured": bool(settings.replicate_api_token),
        "gemini_api_key_configured": bool(settings.gemini_api_key),
        "config": {
            "max_upload_size_mb": settings.max_upload_size_mb,
            "max_image_side": settings.max_image_side,
            "provider_chain": settings.provider_chain,
            "max_candidates_per_provider": settings.max_candidates_per_provider,
        }
    }


@app.on_event("startup")
async def startup_event():
    """Runs on application startup"""
    logger.info("="*50)
    logger.info("Application startup")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"Replicate API configured: {bool(settings.replicate_api_token)}")
    logger.info(f"Gemini API configured: {bool(settings.gemini_api_key)}")
    logger.info(f"Max upload size: {settings.max_upload_size_mb}MB")
    logger.info("="*50)


@app.on_event("shutdown")
async def shutdown_event():
    """Runs on application shutdown"""
    logger.info("Application shutdown")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )
