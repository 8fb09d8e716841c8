import os
from typing import List
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Always load .env from root
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
load_dotenv(os.path.join(BASE_DIR, ".env"))


def split_csv(value: str | None) -> List[str]:
    if not value:
        return []
    return [item.strip().lower() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    JWT_SECRET: str = os.getenv("JWT_SECRET", "change-me")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_AUDIENCE: str | None = os.getenv("JWT_AUDIENCE")

    # Full URL wins over the DB_* parts (used for sqlite in tests)
    DATABASE_URL: str | None = os.getenv("DATABASE_URL")
    DB_USER: str | None = os.getenv("DB_USER")
    DB_PASS: str | None = os.getenv("DB_PASS")
    DB_HOST: str | None = os.getenv("DB_HOST", "localhost")
    DB_PORT: str | None = os.getenv("DB_PORT", "5432")
    BUILDER_DB_NAME: str | None = os.getenv("BUILDER_DB_NAME", "builder")
    DB_SSLMODE: str = os.getenv("DB_SSLMODE", "require")

    # Host classification
    PLATFORM_HOSTS: str = os.getenv(
        "PLATFORM_HOSTS", "localhost,127.0.0.1,[::1],0.0.0.0,testserver")
    PLATFORM_DOMAINS: str = os.getenv(
        "PLATFORM_DOMAINS", "keystoneweb.ca,keystoneweb.com")
    PLATFORM_PREVIEW_SUFFIXES: str = os.getenv(
        "PLATFORM_PREVIEW_SUFFIXES", ".vercel.app")
    PLATFORM_HOST_PREFIXES: str = os.getenv("PLATFORM_HOST_PREFIXES", "app.")
    # e.g. "keystonesites.com" serves published sites at {slug}.keystonesites.com
    SITES_ROOT_DOMAIN: str | None = os.getenv("SITES_ROOT_DOMAIN")

    CORS_ORIGINS: str = os.getenv(
        "CORS_ORIGINS", "http://localhost:3000,http://localhost:8080")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    TEMPLATE_CATALOG_DIR: str = os.getenv(
        "TEMPLATE_CATALOG_DIR",
        os.path.join(BASE_DIR, "builder_service", "templates"))
    DEFAULT_TEMPLATE_PAGE_SIZE: int = int(
        os.getenv("DEFAULT_TEMPLATE_PAGE_SIZE", 12))

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def platform_hosts(self) -> List[str]:
        return split_csv(self.PLATFORM_HOSTS)

    @property
    def platform_domains(self) -> List[str]:
        return split_csv(self.PLATFORM_DOMAINS)

    @property
    def platform_preview_suffixes(self) -> List[str]:
        return split_csv(self.PLATFORM_PREVIEW_SUFFIXES)

    @property
    def platform_host_prefixes(self) -> List[str]:
        return split_csv(self.PLATFORM_HOST_PREFIXES)

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()

BUILDER_DATABASE_URL = settings.DATABASE_URL or (
    f"postgresql+psycopg2://{settings.DB_USER}:{settings.DB_PASS}@{settings.DB_HOST}:{settings.DB_PORT}/{settings.BUILDER_DB_NAME}?sslmode={settings.DB_SSLMODE}"
)
