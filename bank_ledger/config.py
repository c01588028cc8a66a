"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings


class LedgerConfig(BaseSettings):
    """Bank ledger service configuration"""

    # Database configuration
    database_url: str = "sqlite:///bank_ledger.db"  # memory://, sqlite:///path or postgresql://...

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Security configuration
    jwt_secret: str = ""  # required, at least 32 bytes; set LEDGER_JWT_SECRET
    jwt_expiry_seconds: int = 600
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "self"
    bcrypt_rounds: int = 12

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text

    # Account defaults
    default_currency: str = "GBP"
    sort_code: str = "10-10-10"

    class Config:
        env_prefix = "LEDGER_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = LedgerConfig()


def get_config() -> LedgerConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> LedgerConfig:
    """Reload configuration from environment"""
    global config
    config = LedgerConfig()
    return config
