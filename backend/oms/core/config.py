from typing import List, Union
import logging

from pydantic import AnyHttpUrl, Field, validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    PROJECT_NAME: str = "Distribution Order Management"
    API_V1_STR: str = "/api/v1"

    # CORS
    BACKEND_CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ]

    @validator("BACKEND_CORS_ORIGINS", pre=True)
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Database
    DATABASE_URI: str = "sqlite+aiosqlite:///./oms.db"
    SQL_DEBUG: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # Identity of the acting user is forwarded by the auth gateway in this header
    ACTOR_HEADER: str = "X-User-Id"

    # Notifications
    NOTIFICATION_LIST_LIMIT: int = Field(default=50, description="Latest notifications returned per request")

    # Nightly sweep that flags batches past their expiry date
    AUTO_EXPIRE_ENABLED: bool = True
    AUTO_EXPIRE_HOUR: int = 2  # 0-23
    AUTO_EXPIRE_MINUTE: int = 0  # 0-59

    class Config:
        case_sensitive = True
        env_file = ".env"


settings = Settings()
logger.info(f"Loaded settings: API_V1_STR={settings.API_V1_STR}, DATABASE_URI={settings.DATABASE_URI}")
