"""
FastAPI backend for the business card manager.

Exposes REST endpoints for business cards, categories, images and OCR.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, settings
from .database.card_repository import BusinessCardRepository
from .database.category_repository import CategoryRepository
from .database.database_service import DatabaseService
from .routers import business_cards_router, categories_router, images_router, ocr_router
from .routers.dependencies import error_response
from .services.image_storage import DatabaseObjectStore, FilesystemObjectStore, ImageService
from .services.ocr_service import OCREngine, OCRService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _describe_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        message = error.get("msg", "Invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Invalid request"


def create_app(app_settings: Optional[Settings] = None, ocr_engine: Optional[OCREngine] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        app_settings: Settings to use instead of the environment-loaded ones
        ocr_engine: Engine override, e.g. a stub when tesseract is unavailable

    Returns:
        Configured FastAPI app; services are created in the lifespan
    """
    config = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db_service = DatabaseService(config.database_url)
        db_service.connect()
        db_service.initialize_schema()

        card_repository = BusinessCardRepository(db_service)
        category_repository = CategoryRepository(db_service)

        if config.image_storage_dir:
            store = FilesystemObjectStore(config.image_storage_dir)
            logger.info(f"Storing images in {config.image_storage_dir}")
        else:
            store = DatabaseObjectStore(db_service)
            logger.info("No image directory configured, storing images in the database")

        app.state.db_service = db_service
        app.state.card_repository = card_repository
        app.state.category_repository = category_repository
        app.state.image_service = ImageService(
            store,
            card_repository,
            allowed_types=config.allowed_image_types,
            max_bytes=config.max_image_bytes,
        )
        app.state.ocr_service = OCRService(
            ocr_engine or OCREngine(config.ocr_languages, config.tesseract_cmd),
            upscale_factor=config.ocr_upscale_factor,
            max_presets=config.ocr_max_presets,
        )

        logger.info(f"{config.app_name} {config.app_version} started")
        yield

        db_service.disconnect()
        logger.info("Database connection closed")

    app = FastAPI(
        title="Business Card Manager API",
        description="REST API for registering business cards and extracting their contents with OCR",
        version=config.app_version,
        lifespan=lifespan,
    )

    # Add CORS middleware to allow frontend requests
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            f"http://localhost:{config.frontend_port}",
            f"http://127.0.0.1:{config.frontend_port}",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        message = _describe_validation_error(exc)
        logger.info(f"Rejected {request.method} {request.url.path}: {message}")
        return error_response(400, message)

    app.include_router(business_cards_router)
    app.include_router(categories_router)
    app.include_router(images_router)
    app.include_router(ocr_router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "Business Card Manager API",
            "version": config.app_version,
            "endpoints": {
                "health": "/health",
                "business_cards": {
                    "list": "GET /api/business-cards",
                    "get": "GET /api/business-cards/{id}",
                    "create": "POST /api/business-cards",
                    "update": "PUT /api/business-cards/{id}",
                    "delete": "DELETE /api/business-cards/{id}",
                },
                "categories": {
                    "list": "GET /api/categories",
                    "get": "GET /api/categories/{id}",
                    "create": "POST /api/categories",
                    "update": "PUT /api/categories/{id}",
                    "delete": "DELETE /api/categories/{id}",
                },
                "images": {
                    "upload": "POST /api/images/upload",
                    "list": "GET /api/images",
                    "get": "GET /api/images/{filename}",
                    "delete": "DELETE /api/images/{filename}",
                },
                "ocr": "POST /api/ocr",
            },
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
