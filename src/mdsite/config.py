"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"
DEFAULT_PERMALINK = "/:categories/:year/:month/:day/:title/"


class Settings(BaseModel):
    title:             str = Field(default="My Site",  description="Site display name")
    base_url:          str = Field(default="",         description="Root URL for absolute links")
    source_dir:        str = Field(default="content",  description="Content root holding Markdown documents")
    destination_dir:   str = Field(default="_site",    description="Output root for the generated site")
    layouts_dir:       str = Field(default="layouts",  description="Directory of named Jinja2 layouts")
    static_dir:        str = Field(default="static",   description="Directory of assets copied verbatim")
    permalink:         str = Field(default=DEFAULT_PERMALINK, description="Permalink pattern for pages")
    parser_config:     str = Field(default="gfm-like", description="MarkdownIt parser preset name")
    workers:           int = Field(default=1,   ge=1, description="Render threads; 1 renders sequentially")
    asset_retries:     int = Field(default=3,   ge=0, description="Extra attempts for a failed asset copy")
    asset_retry_delay: float = Field(default=0.1, ge=0, description="Seconds between asset copy attempts")
    feed:              bool = Field(default=False, description="Write an Atom feed of recent posts")
    feed_path:         str = Field(default="feed.xml", description="Output path of the Atom feed")
    feed_limit:        int = Field(default=20,  ge=1, description="Max entries in the Atom feed")
    log_level:         str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")


def load_config(config_file: str = None, overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MDSITE_<FIELD> env vars, then non-None CLI overrides."""
    path = Path(config_file or CONFIG_FILE)
    data: dict[str, Any] = {}
    if path.exists():
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {path.name}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {path.name}: expected a mapping, got {type(data).__name__}")
    elif config_file is not None:
        raise ValueError(f"Config file not found: {path}")

    for name in Settings.model_fields:
        if val := os.getenv(f"MDSITE_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
