"""Application configuration"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Nivrit AI"
    VERSION: str = "0.1.0"
    DEBUG: bool = False

    # database
    DATABASE_URL: str = "sqlite:///./nivrit.db"

    # JWT
    SECRET_KEY: str = "your-secret-key-change-in-production"

    # Azure OpenAI
    AZURE_OPENAI_API_KEY: str = ""
    AZURE_OPENAI_ENDPOINT: str = ""
    AZURE_OPENAI_DEPLOYMENT_NAME: str = ""
    AZURE_OPENAI_API_VERSION: str = "2025-01-01-preview"

    # WhatsApp Cloud API
    WHATSAPP_ACCESS_TOKEN: str = ""
    WHATSAPP_PHONE_NUMBER_ID: str = ""
    WHATSAPP_API_VERSION: str = "v20.0"
    WHATSAPP_VERIFY_TOKEN: str = ""

    # Notification worker
    NOTIFICATION_WORKER_ENABLED: bool = True
    NOTIFICATION_INTERVAL_SECONDS: int = 30
    NOTIFICATION_WARMUP_SECONDS: int = 5
    NOTIFICATION_BATCH_SIZE: int = 50
    NOTIFICATION_REQUEUE_WHEN_NOT_READY: bool = False

    # Rate limit (slowapi)
    RATE_LIMIT_ENABLED: bool = True
    CHAT_RATE_LIMIT: str = "20/minute"

    # CORS
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:3001",
        "http://localhost:3002",
        "http://localhost:3003",
    ]

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )


settings = Settings()
