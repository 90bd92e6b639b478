from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "careflow"
    use_mongo: bool = False

    # matching
    default_search_radius_miles: float = 20.0
    match_candidate_limit: int = 10
    auto_match_timeout_seconds: float = 10.0

    log_level: str = "INFO"

    # geocoding: nominatim | opencage | google
    geocoder: str = "nominatim"
    opencage_key: str | None = None
    google_maps_key: str | None = None
    geocode_min_interval_seconds: float = 1.0
    admin_contact: str = "mailto:admin@example.com"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
