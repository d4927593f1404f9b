from anystore.settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="gitpool_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    debug: bool = False
    log_level: str = "info"

    scratch_dir: str | None = None
    """Parent directory for archive overlays (default: system temp dir)"""
    scratch_prefix: str = "gitpool-archive-"
    keep_scratch: bool = False
    """Don't remove archive overlays on close (for debugging)"""
