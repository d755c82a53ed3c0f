"""Configuration management for News Haiku Feed."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

import boto3

from .errors import ConfigurationError
from .models import FeedSource
from .sources import DEFAULT_FEED_SOURCES


@dataclass
class BedrockConfig:
    """Configuration for Amazon Bedrock text generation."""

    model_id: str = "amazon.nova-micro-v1:0"
    region: str = "us-east-1"
    max_tokens: int = 60
    temperature: float = 0.8


@dataclass
class PipelineConfig:
    """Configuration for the feed-to-haiku pipeline."""

    max_requests_per_second: int = 5
    batch_size: int = 3
    batch_delay_seconds: float = 0.5
    sources_per_cycle: int = 2
    max_items_per_feed: int = 5
    max_excerpt_length: int = 500
    request_timeout: int = 30


@dataclass
class ServerConfig:
    """Configuration for the live update server."""

    host: str = "0.0.0.0"
    port: int = 8080
    poll_interval_seconds: float = 120.0
    cache_lifetime_seconds: float = 3 * 60 * 60


@dataclass
class TranslationConfig:
    """Configuration for haiku translation and its on-disk cache."""

    target_language: str = "Russian"
    cache_path: Path = field(default_factory=lambda: Path("translation-cache.json"))
    max_tokens: int = 100


class Config:
    """Main configuration manager."""

    # Default feeds file path
    FEEDS_FILE = "feeds.json"
    CACHE_FILE = "translation-cache.json"

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.aws_region = os.getenv(
            "CURRENT_AWS_REGION", os.getenv("AWS_DEFAULT_REGION", "us-east-1")
        )
        self.bedrock_model_id = os.getenv("BEDROCK_MODEL_ID", "amazon.nova-micro-v1:0")
        self.feeds_file = os.getenv("FEEDS_FILE", self.FEEDS_FILE)
        self.host = os.getenv("HAIKU_HOST", "0.0.0.0")
        self.port = int(os.getenv("HAIKU_PORT", "8080"))
        self.poll_interval = float(os.getenv("HAIKU_POLL_INTERVAL", "120"))
        self.cache_lifetime = float(os.getenv("HAIKU_CACHE_LIFETIME", str(3 * 60 * 60)))
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

        # Serverless hosts only allow writes under /tmp
        cache_dir = "/tmp" if os.getenv("SERVERLESS") else os.getcwd()
        self.translation_cache_path = Path(
            os.getenv("TRANSLATION_CACHE_PATH", str(Path(cache_dir) / self.CACHE_FILE))
        )

    def get_feed_sources(self) -> list[FeedSource]:
        """Get feed sources from feeds.json, or the built-in registry."""
        feeds_file = Path(self.feeds_file)
        if not feeds_file.exists():
            return list(DEFAULT_FEED_SOURCES)

        try:
            with open(feeds_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in feeds file: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Error reading feeds file: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Feeds file must contain a JSON object: {feeds_file}")

        sources = [
            FeedSource(name=feed.get("name") or feed["url"], url=feed["url"])
            for feed in data.get("feeds", [])
            if feed.get("enabled", True) and "url" in feed
        ]

        if not sources:
            raise ConfigurationError(f"No enabled feeds found in {feeds_file}")

        return sources

    def get_bedrock_config(self) -> BedrockConfig:
        """Get Bedrock configuration."""
        return BedrockConfig(model_id=self.bedrock_model_id, region=self.aws_region)

    def get_pipeline_config(self) -> PipelineConfig:
        """Get pipeline configuration."""
        return PipelineConfig()

    def get_server_config(self) -> ServerConfig:
        """Get server configuration."""
        return ServerConfig(
            host=self.host,
            port=self.port,
            poll_interval_seconds=self.poll_interval,
            cache_lifetime_seconds=self.cache_lifetime,
        )

    def get_translation_config(self) -> TranslationConfig:
        """Get translation configuration."""
        return TranslationConfig(cache_path=self.translation_cache_path)

    def require_credentials(self) -> None:
        """Refuse to start when no AWS credentials can be resolved.

        Raises:
            ConfigurationError: If boto3 finds no credentials
        """
        credentials = boto3.Session(region_name=self.aws_region).get_credentials()
        if credentials is None:
            raise ConfigurationError(
                "Missing AWS credentials for Bedrock - configure them before starting"
            )
