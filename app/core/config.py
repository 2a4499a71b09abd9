from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"
    APP_ENV: str = "development"
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"

    # Documentos JSON (tickets.json, payments.json) y datos de referencia (routes.json)
    DATA_DIR: str = "data"
    ASSETS_DIR: str = "assets"

    # Procesador de pagos: "simulated" (por defecto) o "gateway"
    PAYMENT_PROVIDER: str = "simulated"
    # Sin valor por defecto: el gateway real exige que se configure en .env
    PAYMENT_PROVIDER_TOKEN: Optional[str] = None
    PAYMENT_GATEWAY_URL: str = "https://sandbox.pagos.example.co/api"
    PAYMENT_CARD_DELAY_SECONDS: float = 2.0
    PAYMENT_PSE_DELAY_SECONDS: float = 3.0

    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    RATE_LIMIT_TRUST_PROXY: bool = False
    RATE_LIMIT_RESERVATIONS: str = "20/minute"
    RATE_LIMIT_PAYMENTS: str = "10/minute"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignorar campos extra en .env que no están en el modelo

settings = Settings()
