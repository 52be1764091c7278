from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "", "case_sensitive": False}

    # App
    app_name: str = "RoofPV"

    # Logging
    log_json: bool = False
    log_level: str = "INFO"

    # Simulation
    position_method: str = "spa"
    sample_step_minutes: int = 60

    # Default site: central Gothenburg
    site_latitude: float = 57.708870
    site_longitude: float = 11.974560
    site_timezone_offset: float = 1.0
    site_elevation: float = 20.0
    site_pressure: float = 1013.0
    site_temperature: float = 5.0


settings = Settings()
