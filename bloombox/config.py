"""
Configuration management for BloomBox
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Library settings"""

    # Logging
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Bloom Filter defaults
    DEFAULT_EXPECTED_ITEMS: int = 1_000_000  # 1M items
    DEFAULT_FP_RATE: float = 0.001  # 0.1% false positive rate

    # Upper bound on the bit array size
    MAX_BIT_LENGTH: int = 1 << 36  # 8 GiB of bits

    class Config:
        env_prefix = "BLOOMBOX_"
        env_file = ".env"
        env_file_encoding = "utf-8"

    def get_log_level(self) -> str:
        """Get effective logging level name"""
        if self.DEBUG:
            return "DEBUG"
        return self.LOG_LEVEL.upper()


# Global settings instance
settings = Settings()
