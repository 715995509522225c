from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

from vibecheck.config.engine_config import EngineConfig


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "VibeCheck Activity API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = True

    # Parquet tables (venues.parquet, check_ins.parquet)
    DATA_DIR: str = "data"

    # Refresh loops
    BACKGROUND_REFRESH: bool = True
    DATA_REFRESH_INTERVAL_S: float = 30.0
    HEATMAP_REFRESH_INTERVAL_S: float = 60.0

    # Live heatmap
    LIVE_WINDOW_MINUTES: int = 90

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    model_config = SettingsConfigDict(
        env_prefix="VIBECHECK_", env_file=".env", extra="ignore"
    )

    def engine_config(self) -> EngineConfig:
        return EngineConfig(
            LIVE_WINDOW_MINUTES=self.LIVE_WINDOW_MINUTES,
            DATA_REFRESH_INTERVAL_S=self.DATA_REFRESH_INTERVAL_S,
            HEATMAP_REFRESH_INTERVAL_S=self.HEATMAP_REFRESH_INTERVAL_S,
        )


settings = Settings()
