from pathlib import Path
from typing import Optional, Union

from dotenv import find_dotenv, load_dotenv
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    SERVER_URL: str = "localhost:3000"
    USE_TLS: bool = False
    USERNAME: Optional[str] = None
    PASSWORD: Optional[str] = None
    DEFAULT_TTL_S: float = 30.0
    DEFAULT_DECIMALS: int = 1
    NO_DATA_SENTINEL: str = "--"
    RECONNECT_DELAY_S: float = 2.0
    MAX_RECONNECT_DELAY_S: float = 30.0
    SUBSCRIBE_PERIOD_MS: int = 1000
    MEMORY_THRESHOLD_MB: float = 512.0
    METRICS_INTERVAL_S: float = 5.0

    model_config = {"env_prefix": "SIGNALK_"}


def load_settings(env_file: Optional[Union[str, Path]] = None) -> Settings:
    """Load a .env file into the environment, then build Settings from it.

    Variables already set in the environment win over the file.
    """
    if env_file is not None:
        load_dotenv(dotenv_path=env_file)
    else:
        load_dotenv(find_dotenv(usecwd=True))
    return Settings()


settings = Settings()
