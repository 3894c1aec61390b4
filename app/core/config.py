from __future__ import annotations

import os
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["development", "production", "staging", "test"]


def _resolve_env_files() -> tuple[str, ...]:
    env = os.getenv("BLOGASSIST_ENVIRONMENT", "development").lower()
    if env in {"prod", "production"}:
        return (".env", ".env.prod")
    if env in {"dev", "development"}:
        return (".env", ".env.dev")
    if env in {"test", "testing"}:
        return (".env", ".env.test")
    return (".env",)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BLOGASSIST_",
        env_file=_resolve_env_files(),
        env_nested_delimiter="__",
        extra="ignore",
    )

    environment: Environment = "development"
    project_name: str = "Shop Blog Assistant"
    api_v1_prefix: str = "/api/v1"
    log_level: str = "INFO"
    log_json: bool = False
    rate_limit: str = "60/minute"
    allowed_hosts: list[str] = ["*"]
    cors_origins: list[str] = []
    enable_docs: bool = True

    openai_api_key: str | None = None
    openai_model: str = "gpt-4o"
    openai_max_output_tokens: int = 8000
    openai_temperature: float = 0.7
    openai_timeout_seconds: float | None = 120.0

    shop_domain: str = ""
    shop_admin_token: str = ""
    shop_api_version: str = "2025-01"
    shop_timeout_seconds: float = 30.0
    default_blog_title: str = "News"
    article_author: str = "SEO Assistant"
    strict_payload: bool = False

    rate_limit_storage_uri: str = "memory://"
    blog_generation_limit: str = "10/hour"
    topic_research_limit: str = "2/day"

    store_url: str = ""
    store_profile: str = ""

    database_url: str | None = None
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "blogassist"

    @property
    def async_database_uri(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            "postgresql+asyncpg://"
            f"{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def shop_subject(self) -> str:
        return self.shop_domain.replace(".myshopify.com", "")


@lru_cache
def get_settings() -> Settings:
    return Settings()
