"""
Configuration Management for Route Recommender
==============================================

This module handles:
- Loading environment variables from .env file
- Validating API keys, timeouts and scoring weights
- Providing centralized configuration access
- Setting up default values and logging

Usage:
    from config import config
    radius = config.POI_SEARCH_RADIUS_KM
    weights = config.scoring_weights()
"""

import os
import logging
from typing import Optional, Dict
from pathlib import Path
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator


class Config(BaseSettings):
    """
    Centralized configuration class using Pydantic for validation
    Loads settings from environment variables with type checking
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =============================================================================
    # DATA PROVIDERS - all optional, the pipeline degrades without them
    # =============================================================================

    SERPAPI_API_KEY: Optional[str] = None
    SERPAPI_URL: str = "https://serpapi.com/search"
    OVERPASS_URL: str = "https://overpass-api.de/api/interpreter"
    WTTR_URL: str = "https://wttr.in"
    NOMINATIM_URL: str = "https://nominatim.openstreetmap.org"
    HTTP_USER_AGENT: str = "Route-Recommender/1.0"

    # =============================================================================
    # API TIMEOUTS
    # =============================================================================

    SOURCE_TIMEOUT_SECONDS: float = 15.0
    WEATHER_TIMEOUT_SECONDS: float = 10.0
    GEOCODING_TIMEOUT_SECONDS: float = 10.0

    @field_validator('SOURCE_TIMEOUT_SECONDS', 'WEATHER_TIMEOUT_SECONDS',
                     'GEOCODING_TIMEOUT_SECONDS')
    @classmethod
    def validate_timeout(cls, v):
        """Timeouts must be positive"""
        if v <= 0:
            raise ValueError(f"Timeout must be positive, got {v}")
        return v

    # =============================================================================
    # CACHE CONFIGURATION
    # =============================================================================

    WEATHER_CACHE_TTL: int = 1800  # 30 minutes
    CACHE_MAX_SIZE: int = 1000

    # =============================================================================
    # ROUTE SAMPLING AND SEARCH
    # =============================================================================

    CHECKPOINT_INTERVAL_KM: float = 50.0
    AVERAGE_SPEED_KMH: float = 80.0
    POI_SEARCH_RADIUS_KM: float = 10.0
    MAX_POI_RESULTS: int = 20
    CHECKPOINT_WORKERS: int = 1

    @field_validator('CHECKPOINT_INTERVAL_KM', 'AVERAGE_SPEED_KMH', 'POI_SEARCH_RADIUS_KM')
    @classmethod
    def validate_positive_distance(cls, v):
        """Distances and speeds must be positive"""
        if v <= 0:
            raise ValueError(f"Value must be positive, got {v}")
        return v

    # =============================================================================
    # SELECTION LIMITS
    # =============================================================================

    MAX_PER_CATEGORY: int = 3
    MAX_RECOMMENDATIONS: int = 15

    # =============================================================================
    # ML ALGORITHM PARAMETERS
    # =============================================================================

    # POI Scoring weights (must sum to 1.0)
    WEATHER_WEIGHT: float = 0.25
    PREFERENCE_WEIGHT: float = 0.30
    TIME_WEIGHT: float = 0.15
    SEASON_WEIGHT: float = 0.10
    POPULARITY_WEIGHT: float = 0.15
    ACCESSIBILITY_WEIGHT: float = 0.05

    @field_validator('WEATHER_WEIGHT', 'PREFERENCE_WEIGHT', 'TIME_WEIGHT',
                     'SEASON_WEIGHT', 'POPULARITY_WEIGHT', 'ACCESSIBILITY_WEIGHT')
    @classmethod
    def validate_weights(cls, v):
        """Ensure all weights are between 0 and 1"""
        if not 0 <= v <= 1:
            raise ValueError(f"Weight must be between 0 and 1, got {v}")
        return v

    # Seed for fallback data generation; None means nondeterministic
    RANDOM_SEED: Optional[int] = None

    # =============================================================================
    # APPLICATION SETTINGS
    # =============================================================================

    APP_NAME: str = "Route Recommender"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"
    LOG_FILE_PATH: Optional[str] = None

    # =============================================================================
    # CONFIGURATION SETUP
    # =============================================================================

    def scoring_weights(self) -> Dict[str, float]:
        """Return scoring weights keyed by sub-score name"""
        return {
            'weather_suitability': self.WEATHER_WEIGHT,
            'preference_match': self.PREFERENCE_WEIGHT,
            'time_relevance': self.TIME_WEIGHT,
            'seasonal_relevance': self.SEASON_WEIGHT,
            'popularity_score': self.POPULARITY_WEIGHT,
            'accessibility_score': self.ACCESSIBILITY_WEIGHT,
        }

    def create_directories(self) -> None:
        """Create the log directory if file logging is enabled"""
        if self.LOG_FILE_PATH:
            directory = os.path.dirname(self.LOG_FILE_PATH)
            if directory:
                Path(directory).mkdir(parents=True, exist_ok=True)

    def setup_logging(self) -> None:
        """Configure application logging"""
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

        handlers = [logging.StreamHandler()]  # Console output
        if self.LOG_FILE_PATH:
            handlers.append(logging.FileHandler(self.LOG_FILE_PATH))

        logging.basicConfig(
            level=getattr(logging, self.LOG_LEVEL.upper(), logging.INFO),
            format=log_format,
            handlers=handlers
        )

    def validate_configuration(self) -> bool:
        """
        Validate that all critical configuration is properly set
        Returns True if configuration is valid, raises exception otherwise
        """
        try:
            weight_sum = sum(self.scoring_weights().values())

            if not 0.999 <= weight_sum <= 1.001:  # Allow small floating point errors
                raise ValueError(f"POI scoring weights must sum to 1.0, got {weight_sum}")

            if self.MAX_PER_CATEGORY < 1 or self.MAX_RECOMMENDATIONS < 1:
                raise ValueError("Selection limits must be at least 1")

            if self.CHECKPOINT_WORKERS < 1:
                raise ValueError("CHECKPOINT_WORKERS must be at least 1")

            return True

        except Exception as e:
            logging.error(f"Configuration validation failed: {e}")
            raise


def load_configuration() -> Config:
    """
    Load and validate configuration from environment
    Creates directories and sets up logging
    """
    try:
        # Load environment variables from .env file
        load_dotenv()

        config = Config()
        config.create_directories()
        config.setup_logging()
        config.validate_configuration()

        logging.info(f"Configuration loaded successfully for {config.APP_NAME} v{config.APP_VERSION}")
        return config

    except Exception as e:
        print(f"Failed to load configuration: {e}")
        raise


# =============================================================================
# GLOBAL CONFIGURATION INSTANCE
# =============================================================================

config = load_configuration()
