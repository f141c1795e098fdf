# config/settings.py
"""
Configuración centralizada de la aplicación usando Pydantic Settings.
Las variables se cargan desde el archivo .env

El núcleo (normalizadores, mappers, builders) NO lee configuración: el
cliente de Baserow recibe un `BaserowConfig` explícito al construirse.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


# Nombres lógicos de tablas (clave en BaserowConfig.tables)
TABLE_FIELDS = "fields"
TABLE_LOTS = "lots"
TABLE_CYCLES = "cycles"
TABLE_HARVESTS = "harvests"
TABLE_STOCK = "stock"
TABLE_TRUCK_TRIPS = "truck_trips"
TABLE_TRUCKS = "trucks"
TABLE_PROVIDERS = "providers"


@dataclass(frozen=True)
class BaserowConfig:
    """Configuración explícita del gateway de Baserow."""
    url: str
    token: str
    timeout_s: float = 30.0
    page_size: int = 200
    tables: Dict[str, Optional[int]] = field(default_factory=dict)


class Settings(BaseSettings):
    """Configuración de la aplicación"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Baserow
    BASEROW_URL: str = "https://api.baserow.io"
    BASEROW_TOKEN: str = ""
    BASEROW_TIMEOUT_S: float = 30.0
    BASEROW_PAGE_SIZE: int = 200

    # IDs de tablas (opcionales: se validan al usarse)
    BASEROW_FIELDS_TABLE_ID: int | None = None
    BASEROW_LOTS_TABLE_ID: int | None = None
    BASEROW_CYCLES_TABLE_ID: int | None = None
    BASEROW_HARVESTS_TABLE_ID: int | None = None
    BASEROW_STOCK_TABLE_ID: int | None = None
    BASEROW_TRUCK_TRIPS_TABLE_ID: int | None = None
    BASEROW_TRUCKS_TABLE_ID: int | None = None
    BASEROW_PROVIDERS_TABLE_ID: int | None = None

    # CORS
    CORS_ALLOW_ORIGINS: List[str] = ["http://localhost:3000"]

    # Logging
    APP_DEBUG: bool = False
    LOG_LEVEL: str | None = None
    LOG_DIR: str = "logs"

    # Zona horaria de referencia para combinar fecha + hora de formularios
    FARM_TIMEZONE: str = "America/Argentina/Buenos_Aires"

    def model_post_init(self, __context) -> None:
        # Sin barra final para concatenar rutas de la API
        self.BASEROW_URL = self.BASEROW_URL.rstrip("/")
        if not self.LOG_LEVEL:
            self.LOG_LEVEL = "DEBUG" if self.APP_DEBUG else "INFO"

    def baserow_config(self) -> BaserowConfig:
        return BaserowConfig(
            url=self.BASEROW_URL,
            token=self.BASEROW_TOKEN,
            timeout_s=self.BASEROW_TIMEOUT_S,
            page_size=self.BASEROW_PAGE_SIZE,
            tables={
                TABLE_FIELDS: self.BASEROW_FIELDS_TABLE_ID,
                TABLE_LOTS: self.BASEROW_LOTS_TABLE_ID,
                TABLE_CYCLES: self.BASEROW_CYCLES_TABLE_ID,
                TABLE_HARVESTS: self.BASEROW_HARVESTS_TABLE_ID,
                TABLE_STOCK: self.BASEROW_STOCK_TABLE_ID,
                TABLE_TRUCK_TRIPS: self.BASEROW_TRUCK_TRIPS_TABLE_ID,
                TABLE_TRUCKS: self.BASEROW_TRUCKS_TABLE_ID,
                TABLE_PROVIDERS: self.BASEROW_PROVIDERS_TABLE_ID,
            },
        )


settings = Settings()
