from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ENV: str = "dev"
    SNOWFLAKE_DATACENTER_ID: Optional[int] = None
    SNOWFLAKE_WORKER_ID: Optional[int] = None
    MAX_BATCH_SIZE: int = 1024
    LOG_LEVEL: str = "INFO"
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    class Config:
        env_file = ".env"
        env_ignore_empty = True
        extra = "ignore"


settings = Settings()
