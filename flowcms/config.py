"""
Configuration management for flowcms.
Settings are read from environment variables (optionally from a ``.env`` file).
"""
import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    # Root prefix every local asset reference is rewritten under
    ASSET_PREFIX: str = os.getenv("FLOWCMS_ASSET_PREFIX", "/assets")

    # Version stamped into every generated manifest
    MANIFEST_VERSION: str = os.getenv("FLOWCMS_MANIFEST_VERSION", "1.0")

    # Upper bound on pages accepted in a single conversion request
    MAX_PAGES: int = int(os.getenv("FLOWCMS_MAX_PAGES", "200"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


config = Config()
