from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env.local", env_file_encoding="utf-8", extra="ignore")

    # Firebase
    GOOGLE_APPLICATION_CREDENTIALS: Optional[str] = None
    FIREBASE_CREDENTIALS_JSON_STRING: Optional[str] = None
    FIREBASE_STORAGE_BUCKET: Optional[str] = None  # e.g. my-app.firebasestorage.app

    # Vertex AI text embedding
    VERTEX_PROJECT_ID: Optional[str] = None  # falls back to the credential's project_id
    VERTEX_LOCATION: str = "asia-southeast1"
    EMBEDDING_MODEL_ID: str = "text-embedding-004"
    EMBEDDING_DIM: int = Field(768, gt=0)
    EMBEDDING_TIMEOUT_SECONDS: float = 30.0

    # Matching
    MATCH_SIMILARITY_THRESHOLD: float = Field(0.8, ge=0.0, le=1.0)
    MATCH_MAX_RESULTS: int = Field(5, gt=0)

    # Mail transport
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASS: Optional[str] = None
    SMTP_SENDER: Optional[str] = None  # defaults to SMTP_USER
    MAIL_BRAND: str = "LostHub"

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "https://localhost:3000",
    ]


settings = Settings()
