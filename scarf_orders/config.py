import os
from dotenv import load_dotenv

from scarf_orders.domain.exceptions import ConfigurationError

load_dotenv()


class Settings:
    # Database
    POSTGRES_CONNECTION_STRING: str = os.getenv("POSTGRES_CONNECTION_STRING", "")

    # Australia Post PAC API
    AUSPOST_PAC_API: str = os.getenv("AUSPOST_PAC_API", "")
    AUSPOST_BASE_URL: str = os.getenv("AUSPOST_BASE_URL", "https://digitalapi.auspost.com.au")

    # Stripe
    STRIPE_SECRET_KEY: str = os.getenv("STRIPE_SECRET_KEY", "")
    STRIPE_BASE_URL: str = os.getenv("STRIPE_BASE_URL", "https://api.stripe.com")

    # Внешние вызовы
    HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", "10.0"))
    PAYMENT_UPDATE_RETRIES: int = int(os.getenv("PAYMENT_UPDATE_RETRIES", "3"))
    PAYMENT_UPDATE_RETRY_DELAY: float = float(os.getenv("PAYMENT_UPDATE_RETRY_DELAY", "0.5"))

    # Reconciliation worker
    RECONCILIATION_WORKER_ENABLED: bool = os.getenv("RECONCILIATION_WORKER_ENABLED", "true").lower() == "true"
    RECONCILIATION_INTERVAL: float = float(os.getenv("RECONCILIATION_INTERVAL", "30"))
    RECONCILIATION_BATCH_SIZE: int = int(os.getenv("RECONCILIATION_BATCH_SIZE", "10"))
    RECONCILIATION_MAX_ATTEMPTS: int = int(os.getenv("RECONCILIATION_MAX_ATTEMPTS", "5"))

    @property
    def DATABASE_URL(self) -> str:
        """Асинхронный URL для приложения"""
        return (
            self.POSTGRES_CONNECTION_STRING
            .replace("postgresql://", "postgresql+asyncpg://")
            .replace("postgres://", "postgresql+asyncpg://")
        )

    @property
    def SYNC_DATABASE_URL(self) -> str:
        """Синхронный URL для Alembic"""
        return self.POSTGRES_CONNECTION_STRING.replace("postgres://", "postgresql://")

    def validate(self) -> None:
        """Проверка обязательных настроек при старте приложения"""
        missing = [
            name for name in ("POSTGRES_CONNECTION_STRING", "AUSPOST_PAC_API", "STRIPE_SECRET_KEY")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigurationError(f"Не заданы переменные окружения: {', '.join(missing)}")


settings = Settings()
