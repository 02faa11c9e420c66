"""Configuration management for the analytics query service"""
from typing import List
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    
    # Service Configuration
    SERVICE_HOST: str = "0.0.0.0"
    SERVICE_PORT: int = 8000
    SERVICE_NAME: str = "NL Analytics Service"
    
    # Redis Configuration (progress publishing)
    REDIS_URL: str = "redis://redis:6379/1"
    PROGRESS_PUBLISHING_ENABLED: bool = False
    
    # Ollama Configuration
    AI_ENABLED: bool = False
    OLLAMA_HOST: str = "http://ollama:11434"
    OLLAMA_MODEL: str = "llama3.1:8b"
    OLLAMA_TIMEOUT: int = 60
    OLLAMA_TEMPERATURE: float = 0.1
    AI_TIMEOUT: float = 30.0  # Upper bound before falling back to local analysis
    
    # Schema Cache Configuration
    SCHEMA_CACHE_TTL: int = 300  # 5 minutes
    SCHEMA_FETCH_TIMEOUT: float = 3.0
    
    # Type Inference Configuration
    TYPE_SAMPLE_SIZE: int = 100
    QUICK_SAMPLE_SIZE: int = 5
    
    # Adapter Configuration
    SHEETS_API_BASE_URL: str = "https://sheets.googleapis.com/v4/spreadsheets"
    SHEETS_SAMPLE_ROWS: int = 10
    API_REQUEST_TIMEOUT: int = 30
    
    # Query Configuration
    DEFAULT_QUERY_LIMIT: int = 1000
    FALLBACK_YEARS: List[str] = ["2020", "2021", "2022", "2023", "2024", "2025", "2026"]
    
    # Logging Configuration
    LOG_LEVEL: str = "INFO"
    
    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
