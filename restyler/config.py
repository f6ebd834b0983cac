"""Application settings"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Environment-driven settings"""

    # API Keys (each provider is only built when its key is present)
    replicate_api_token: Optional[str] = None
    gemini_api_key: Optional[str] = None

    # Application
    app_name: str = "Room Restyle API"
    app_version: str = "1.0.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # File Upload
    max_upload_size_mb: int = 10
    allowed_extensions: List[str] = [".jpg", ".jpeg", ".png", ".webp"]
    allowed_mime_types: List[str] = ["image/jpeg", "image/jpg", "image/png", "image/webp"]

    # Image normalization
    max_image_side: int = 1024
    max_payload_mb: int = 20
    jpeg_quality: int = 85
    fallback_image_side: int = 768
    fallback_jpeg_quality: int = 75

    # Pre-send optimization
    optimize_max_side: int = 1024
    optimize_max_mb: int = 4
    optimize_jpeg_quality: int = 70

    # Generation providers, tried in this order
    provider_chain: List[str] = ["sdxl", "sd15", "gemini_image"]
    max_candidates_per_provider: int = 2  # cost cap, applies whatever the caller asks for
    output_fetch_timeout_seconds: float = 30

    sdxl_model: str = "stability-ai/sdxl:39ed52f2a78e934b3ba6e2a89f5b1c712de7dfea535525255b1aa35c5565e08b"
    sdxl_timeout_seconds: float = 120

    sd15_model: str = "timothybrooks/instruct-pix2pix:30c1d0b916a6f8efce20493a5b39ad6a4710c63cfa5c146e6b25b2046119ae23"
    sd15_timeout_seconds: float = 90

    # Gemini API
    gemini_vision_model: str = "gemini-2.5-flash"
    gemini_text_model: str = "gemini-2.5-flash"
    gemini_image_model: str = "gemini-2.5-flash-image"
    gemini_timeout_seconds: float = 60
    gemini_image_timeout_seconds: float = 90

    # Logging
    log_level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def max_payload_bytes(self) -> int:
        return self.max_payload_mb * 1024 * 1024

    @property
    def optimize_max_bytes(self) -> int:
        return self.optimize_max_mb * 1024 * 1024


# Global settings instance
settings = Settings()
