from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./stashkeeper.db"

    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # API
    API_V1_PREFIX: str = "/api/v1"

    # CORS
    CORS_ORIGINS: list[str] = ["*"]

    # Backend de armazenamento: "sql" (SQLAlchemy) | "supabase" (cliente REST)
    STORE_BACKEND: str = "sql"

    # Supabase
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""  # service key para scripts administrativos

    # Regras de estoque
    STOCK_TOLERANCE: float = 0.01  # folga para ruído de arredondamento em validações de saída
    QUANTITY_PRECISION: int = 3  # casas decimais das quantidades
    CONSISTENCY_EPSILON: float = 0.0001  # diferença máxima aceita na conferência do estoque
    STRICT_UNIT_CONVERSION: bool = False  # True: conversão entre unidades incompatíveis falha

    # Redis / Celery
    REDIS_URL: str = "redis://localhost:6379/0"
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )


settings = Settings()
