"""Database configuration model."""

from typing import Literal

from pydantic import BaseModel, Field, SecretStr


class DatabaseConfig(BaseModel):
    """Connection settings for the items database."""

    backend: Literal["postgres", "inmemory"] = "postgres"
    host: str = "localhost"
    port: int = Field(default=5432, ge=1, le=65535)
    name: str = "cloudnative"
    user: str = "postgres"
    password: SecretStr = SecretStr("postgres")
    min_pool_size: int = Field(default=1, ge=0)
    max_pool_size: int = Field(default=10, ge=1)
    command_timeout: float = Field(default=60.0, gt=0)
    create_schema: bool = False

    @property
    def dsn(self) -> str:
        """Build the asyncpg connection string."""
        return (
            f"postgresql://{self.user}:{self.password.get_secret_value()}"
            f"@{self.host}:{self.port}/{self.name}"
        )
