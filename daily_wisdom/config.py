"""
Application configuration loaded from the environment (and a .env file).
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from daily_wisdom.errors import ConfigurationError

DEFAULT_PROMPTS_PATH = Path(__file__).with_name("prompts.yaml")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class AppConfig:
    """Runtime configuration"""
    # Providers
    gemini_api_key: str = ""
    gemini_generation_model: str = "gemini-2.5-flash"
    gemini_translation_model: str = "gemini-2.5-flash"
    deepl_api_key: str = ""
    deepl_api_url: str = "https://api-free.deepl.com/v2"
    deepl_min_quota: int = 1000
    quota_cache_ttl_seconds: int = 300

    # Storage and logs
    database_path: str = "data/daily_wisdom.db"
    log_dir: str = "logs"
    log_level: str = "INFO"

    # Serving
    environment: str = "development"
    generate_on_startup: bool = True
    generate_article_api_key: Optional[str] = None
    api_host: str = "0.0.0.0"
    api_port: int = 8080

    prompts_path: str = str(DEFAULT_PROMPTS_PATH)

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


def load_config(env_file: Optional[str] = None) -> AppConfig:
    """Build AppConfig from environment variables, loading .env first."""
    load_dotenv(env_file)
    return AppConfig(
        gemini_api_key=os.getenv('GEMINI_API_KEY', ''),
        gemini_generation_model=os.getenv('GEMINI_GENERATION_MODEL', 'gemini-2.5-flash'),
        gemini_translation_model=os.getenv('GEMINI_TRANSLATION_MODEL', 'gemini-2.5-flash'),
        deepl_api_key=os.getenv('DEEPL_API_KEY', ''),
        deepl_api_url=os.getenv('DEEPL_API_URL', 'https://api-free.deepl.com/v2'),
        deepl_min_quota=int(os.getenv('DEEPL_MIN_QUOTA', '1000')),
        quota_cache_ttl_seconds=int(os.getenv('QUOTA_CACHE_TTL_SECONDS', '300')),
        database_path=os.getenv('DATABASE_PATH', 'data/daily_wisdom.db'),
        log_dir=os.getenv('LOG_DIR', 'logs'),
        log_level=os.getenv('LOG_LEVEL', 'INFO'),
        environment=os.getenv('APP_ENV', 'development'),
        generate_on_startup=_env_bool('GENERATE_ON_STARTUP', True),
        generate_article_api_key=os.getenv('GENERATE_ARTICLE_API_KEY') or None,
        api_host=os.getenv('API_HOST', '0.0.0.0'),
        api_port=int(os.getenv('API_PORT', '8080')),
        prompts_path=os.getenv('PROMPTS_PATH', str(DEFAULT_PROMPTS_PATH)),
    )


def load_prompts(path: Optional[str] = None) -> Dict[str, Any]:
    """Load prompt templates from YAML."""
    prompts_path = path or str(DEFAULT_PROMPTS_PATH)
    try:
        with open(prompts_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        raise ConfigurationError(f"Prompts file not found at {prompts_path}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Error parsing YAML at {prompts_path}: {e}") from e
