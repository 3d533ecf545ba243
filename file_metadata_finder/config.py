from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Load environment variables from a local .env file if present.
load_dotenv()


class Settings(BaseSettings):
    """Scan configuration, fixed for the whole run.

    Values come from (lowest to highest priority) the defaults below,
    METADATA_FINDER_* environment variables or .env, an optional YAML file,
    and explicit overrides from the command line.
    """

    # Output JSON file
    output: Path = Path("output.json")

    # CRC32 for files <= 128KB; sizes only when disabled
    enable_hash: bool = True

    # Row counting stops here for CSV and workbook sheets
    max_rows: int = Field(default=524288, ge=1)

    # Columns shown per schema (0 = unlimited); never affects the schema hash
    max_columns: int = Field(default=255, ge=0)

    # Fuzzy column-set grouping threshold (0 disables)
    fuzzy_threshold: float = Field(default=0.8, ge=0.0, le=1.0)

    model_config = SettingsConfigDict(
        env_prefix="METADATA_FINDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )


def load_yaml(p) -> dict:
    data = yaml.safe_load(Path(p).read_text(encoding="utf-8"))
    return data or {}


def load_settings(config_path: Optional[Path] = None, **overrides) -> Settings:
    """Build Settings from an optional YAML file plus non-None overrides."""
    values = load_yaml(config_path) if config_path else {}
    values.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**values)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance so configuration is read once."""
    return Settings()
