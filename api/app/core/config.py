"""
Configuración central de la aplicación.
Gestiona variables de entorno y configuraciones globales.
Soporta configuración dinámica para desarrollo (ENVIRONMENT=development)
y producción (ENVIRONMENT=production).
"""
import json
from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field, computed_field


class Settings(BaseSettings):
    """
    Clase de configuración de la aplicación.
    Lee variables de entorno y proporciona valores por defecto.

    Grupos de configuración:
    - Servidor y base de datos (DATABASE_URL completa o por componentes)
    - Notion: token de integración, versión del API y secreto de webhooks
    - Sync: tamaño de página, límite de páginas y tamaño de lote inicial
    """

    # Configuración de la aplicación
    APP_NAME: str = Field(default="Life Dashboard Sync")
    APP_VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")

    # Configuración del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    # Base de datos - Componentes separados
    DATABASE_HOST: str = Field(default="localhost")
    DATABASE_PORT: int = Field(default=5432)
    DATABASE_USER: str = Field(default="dashboard_user")
    DATABASE_PASSWORD: str = Field(default="dashboard_pass")
    DATABASE_NAME: str = Field(default="life_dashboard")

    # Base de datos - URL completa (override de componentes si se proporciona)
    DATABASE_URL: str = Field(default="")
    DB_POOL_SIZE: int = Field(default=5)
    DB_MAX_OVERFLOW: int = Field(default=10)

    # Seguridad
    SECRET_KEY: str = Field(default="change-this-secret-key-in-production")
    ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=30)

    # CORS (acepta lista JSON o "*" para todos los origenes)
    CORS_ORIGINS: str = Field(default="*")

    # Notion
    NOTION_API_KEY: str = Field(default="")
    NOTION_API_VERSION: str = Field(default="2022-06-28")
    NOTION_BASE_URL: str = Field(default="https://api.notion.com/v1")
    NOTION_TIMEOUT_SECONDS: float = Field(default=30.0)
    # Si esta vacío no se verifica la firma de los webhooks
    NOTION_WEBHOOK_SECRET: str = Field(default="")

    # Disparo interno de sync (jobs programados, otros servicios)
    INTERNAL_SYNC_SECRET: str = Field(default="")

    # Sync
    SYNC_PAGE_SIZE: int = Field(default=100)
    SYNC_MAX_PAGES: int = Field(default=1000)
    SYNC_INITIAL_BATCH_SIZE: int = Field(default=200)
    SCHEDULED_SYNC_INTERVAL_MINUTES: int = Field(default=60)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/app.log")

    @computed_field
    @property
    def effective_database_url(self) -> str:
        """
        Retorna la URL de base de datos efectiva.
        Si DATABASE_URL está definida, la usa directamente.
        Si no, construye la URL desde los componentes individuales.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}"
            f"@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"
        )

    @computed_field
    @property
    def is_development(self) -> bool:
        """Indica si el entorno es de desarrollo."""
        return self.ENVIRONMENT.lower() == "development"

    class Config:
        """Configuración de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignorar campos extra del .env


def get_cors_origins(cors_string: str) -> List[str]:
    """
    Parsea la configuración de CORS.
    Acepta "*" para todos los origenes o una lista JSON.
    """
    if cors_string == "*":
        return ["*"]
    try:
        return json.loads(cors_string)
    except json.JSONDecodeError:
        # Si no es JSON válido, retornar como lista simple
        return [origin.strip() for origin in cors_string.split(",")]


# Instancia global de configuración
settings = Settings()
