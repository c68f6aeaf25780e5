# storefront/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./storefront.db"

    AUTH_SECRET_KEY: str
    AUTH_TOKEN_EXPIRE_MINUTES: int = 60
    AUTH_LOGIN: str = "admin"
    AUTH_PASSWORD: str = "admin"

    STRIPE_SECRET_KEY: str = ""     # пусто = платёжный шлюз не настроен
    STRIPE_API_BASE: str = "https://api.stripe.com"
    PAYMENT_TIMEOUT_SECONDS: float = 5.0
    PAYMENT_MIN_AMOUNT: float = 0.5
    PAYMENT_CURRENCIES: str = "usd,eur,gbp,inr"

    LOG_DIR: str = "log"
    LOG_PRINT: str = "1"

    DEBUG: bool = False     # в режиме разработки отдаём текст исключения клиенту

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

    @property
    def payment_currencies(self) -> tuple[str, ...]:
        return tuple(c.strip().lower() for c in self.PAYMENT_CURRENCIES.split(",") if c.strip())

settings = Settings()
