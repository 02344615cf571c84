"""Runtime settings read from the environment (and an optional .env file)."""
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from core.models import ShadowConfig

load_dotenv()

_DEFAULT_ORIGINS = (
    "http://localhost:5173",
    "http://localhost:4173",
    "https://sun-seat-front.vercel.app",
)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


@dataclass(frozen=True)
class Settings:
    overpass_url: str = "https://overpass-api.de/api/interpreter"
    open_meteo_url: str = "https://api.open-meteo.com/v1/forecast"
    user_agent: str = "SunSeat/0.1"
    http_timeout_s: float = 15.0
    default_cloud_fraction: float = 0.3
    building_fetch_concurrency: int = 4
    shadow: ShadowConfig = field(default_factory=ShadowConfig)
    allowed_origins: tuple[str, ...] = _DEFAULT_ORIGINS
    log_level: str = "INFO"
    port: int = 5000


def get_settings() -> Settings:
    """Build settings from the current environment; unset values keep defaults."""
    defaults = Settings()
    origins = defaults.allowed_origins
    front_url = os.getenv("FRONT_URL")
    if front_url and front_url not in origins:
        origins = origins + (front_url,)

    return Settings(
        overpass_url=os.getenv("OVERPASS_URL", defaults.overpass_url),
        open_meteo_url=os.getenv("OPEN_METEO_URL", defaults.open_meteo_url),
        user_agent=os.getenv("SUNSEAT_USER_AGENT", defaults.user_agent),
        http_timeout_s=_env_float("HTTP_TIMEOUT_S", defaults.http_timeout_s),
        default_cloud_fraction=_env_float("DEFAULT_CLOUD_FRACTION", defaults.default_cloud_fraction),
        building_fetch_concurrency=max(
            1, int(_env_float("BUILDING_FETCH_CONCURRENCY", defaults.building_fetch_concurrency))
        ),
        shadow=ShadowConfig(
            max_occlusion_distance_m=_env_float(
                "MAX_OCCLUSION_DISTANCE_M", defaults.shadow.max_occlusion_distance_m
            ),
            azimuth_tolerance_deg=_env_float(
                "AZIMUTH_TOLERANCE_DEG", defaults.shadow.azimuth_tolerance_deg
            ),
        ),
        allowed_origins=origins,
        log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
        port=int(_env_float("PORT", defaults.port)),
    )
