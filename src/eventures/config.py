"""Centralized settings for the eventures map client."""
from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "EVENTURES_"}

    # Event directory API — empty credentials mean anonymous requests
    api_base_url: str = "https://api.eventfinda.co.nz/v2"
    api_username: str = ""
    api_password: str = ""
    user_agent: str = "Eventures/0.1.0"

    # HTTP behaviour
    timeout_s: int = 20
    tries: int = 3
    backoff_s: float = 0.5

    # Results per page of a search
    page_size: int = 20

    # Source used by the CLI / API when none is given: "eventfinda" | "mock"
    default_source: str = "eventfinda"

    # Initial viewpoint (centre of New Zealand)
    default_center_lat: float = -41.35249807015349
    default_center_lon: float = 173.07275377115386
    default_zoom: int = 5

    # Zoom used when panning to a focused marker
    focus_zoom: int = 11


settings = Settings()
