import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class Settings(BaseModel):
    # Upstream Configuration
    upstream_base_url: str = Field(
        default="http://localhost:8112/api/v1", alias="UPSTREAM_BASE_URL"
    )
    upstream_connect_timeout: float = Field(
        default=3.0, alias="UPSTREAM_CONNECT_TIMEOUT"
    )
    upstream_pool_timeout: float = Field(default=7.0, alias="UPSTREAM_POOL_TIMEOUT")
    upstream_read_timeout: float = Field(default=10.0, alias="UPSTREAM_READ_TIMEOUT")

    # Retry Configuration
    retry_max_attempts: int = Field(default=3, alias="RETRY_MAX_ATTEMPTS")
    retry_initial_delay: float = Field(default=1.0, alias="RETRY_INITIAL_DELAY")
    retry_multiplier: float = Field(default=2.0, alias="RETRY_MULTIPLIER")
    retry_max_delay: float = Field(default=5.0, alias="RETRY_MAX_DELAY")

    # Cache Configuration
    cache_ttl_seconds: float = Field(default=60.0, alias="CACHE_TTL_SECONDS")
    cache_max_size: int = Field(default=1000, alias="CACHE_MAX_SIZE")
    cache_debug: bool = Field(default=False, alias="CACHE_DEBUG")

    # Server Configuration
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8111, alias="PORT")


global_settings = Settings.model_validate(dict(os.environ))
