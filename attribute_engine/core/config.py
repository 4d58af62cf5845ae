from typing import List, Union
from pydantic_settings import BaseSettings
from pydantic import validator

class Settings(BaseSettings):
    # API Settings
    PROJECT_NAME: str = "Catalog Attribute Engine"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    # Database Settings
    SQLALCHEMY_DATABASE_URI: str = "sqlite:///./catalog_attributes.db"

    # CORS Settings
    BACKEND_CORS_ORIGINS: Union[List[str], str] = ["*"]

    @validator("BACKEND_CORS_ORIGINS", "SYNC_CHANNELS", pre=True)
    def split_comma_separated(cls, v: str | List[str]) -> List[str] | str:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Redis Settings
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    CACHE_ENABLED: bool = True
    CACHE_EXPIRE_SECONDS: int = 3600

    # Marketplace channels tracked by the sync bookkeeping
    SYNC_CHANNELS: Union[List[str], str] = ["shopify", "ebay", "mirakl"]

    LOG_LEVEL: str = "INFO"

    @property
    def DATABASE_URL(self) -> str:
        """Get full database URL."""
        return self.SQLALCHEMY_DATABASE_URI

    @property
    def REDIS_URL(self) -> str:
        """Get full Redis URL."""
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}"

    class Config:
        case_sensitive = True
        env_file = ".env"

settings = Settings()
