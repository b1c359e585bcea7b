"""Application configuration using pydantic settings with structured sections."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False


class DatabaseSettings(BaseModel):
    url: str = Field(default="sqlite+aiosqlite:///./gigledger.db", alias="url")
    echo: bool = False
    pool_size: Optional[int] = None
    max_overflow: Optional[int] = None


class SecuritySettings(BaseModel):
    """Verification of bearer tokens issued by the hosted identity provider."""

    jwt_secret: str = Field(default="change-me", min_length=8)
    algorithm: str = "HS256"
    audience: Optional[str] = None


class PaymentSettings(BaseModel):
    # provider secret key; it also signs the webhook payloads
    secret_key: str = Field(default="change-me", min_length=8)
    signature_header: str = "x-signature"
    # minor currency units per token are price_per_token * 100
    price_per_token: int = Field(default=250, gt=0)
    max_apply_attempts: int = Field(default=3, ge=1)
    provider_base_url: str = "https://api.paystack.co"
    callback_url: str = "http://localhost:3000/wallet"
    timeout_seconds: float = 10.0


class PromotionPlan(BaseModel):
    cost: int = Field(..., gt=0)
    duration_days: int = Field(..., gt=0)


def _default_plans() -> dict[str, PromotionPlan]:
    return {
        "silver": PromotionPlan(cost=3, duration_days=3),
        "gold": PromotionPlan(cost=5, duration_days=10),
        "premium": PromotionPlan(cost=10, duration_days=30),
    }


class PricingSettings(BaseModel):
    """Single source of truth for what tokens buy."""

    application_cost: int = Field(default=3, gt=0)
    plans: dict[str, PromotionPlan] = Field(default_factory=_default_plans)


class RealtimeSettings(BaseModel):
    queue_size: int = Field(default=256, ge=1)


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings(BaseSettings):
    """Top-level application settings with nested sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    project_name: str = "Gigzz Token Ledger"
    api_prefix: str = "/api"
    cors_origins: list[str] = ["*"]

    server: ServerSettings = ServerSettings()
    database: DatabaseSettings = DatabaseSettings()
    security: SecuritySettings = SecuritySettings()
    payments: PaymentSettings = PaymentSettings()
    pricing: PricingSettings = PricingSettings()
    realtime: RealtimeSettings = RealtimeSettings()
    logging: LoggingSettings = LoggingSettings()

    @property
    def database_url(self) -> str:
        return self.database.url

    @property
    def host(self) -> str:
        return self.server.host

    @property
    def port(self) -> int:
        return self.server.port


@lru_cache()
def get_settings() -> Settings:
    return Settings()
