from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Application configuration"""

    # API Settings
    app_name: str = "Business Card Manager"
    app_version: str = "1.0.0"
    debug: bool = True
    log_level: str = "INFO"

    # Database Settings
    database_url: str = "sqlite:///./data/business_cards.db"

    # Image Storage Settings
    image_storage_dir: Optional[str] = "./data/images"  # None falls back to inline database storage
    max_image_bytes: int = 5 * 1024 * 1024
    allowed_image_types: List[str] = ["image/jpeg", "image/jpg", "image/png", "image/webp"]
    image_list_limit: int = 100

    # OCR Settings
    ocr_languages: str = "jpn+eng"
    tesseract_cmd: Optional[str] = None  # Falls back to tesseract on PATH
    ocr_upscale_factor: float = 2.0
    ocr_max_presets: int = 3

    # Listing Settings
    default_page_size: int = 20

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000
    frontend_port: int = 5000
    backend_url: str = "http://localhost:8000"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )


settings = Settings()
