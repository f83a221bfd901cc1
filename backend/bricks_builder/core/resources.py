"""
Process-wide resources with an explicit lifecycle

Created once at startup, handed to services, closed at shutdown:

    async with app_resources() as resources:
        service = BuildSessionService(db, resources=resources)
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from bricks_builder.core.cache import TTLCache
from bricks_builder.core.config import Settings, get_settings
from bricks_builder.core.logging_config import LoggingConfig
from bricks_builder.core.rate_limit import RateLimiter
from bricks_builder.core.text_generation import (TextGenerator,
                                                 build_text_generator)

logger = LoggingConfig.get_logger(__name__)


class AppResources:
    """Response cache, rate limiter and text generator shared by services"""

    def __init__(
        self,
        response_cache: TTLCache[str],
        rate_limiter: Optional[RateLimiter],
        text_generator: TextGenerator
    ):
        self.response_cache = response_cache
        self.rate_limiter = rate_limiter
        self.text_generator = text_generator

    @classmethod
    def create(cls, settings: Optional[Settings] = None) -> "AppResources":
        settings = settings or get_settings()
        cache: TTLCache[str] = TTLCache(
            ttl_seconds=settings.text_generation_cache_ttl_seconds,
            max_entries=settings.text_generation_cache_max_entries,
            name="text_generation",
        )
        rate_limiter = RateLimiter(scope="build") if settings.rate_limit_enabled else None
        return cls(
            response_cache=cache,
            rate_limiter=rate_limiter,
            text_generator=build_text_generator(settings, cache=cache),
        )

    def close(self) -> None:
        self.response_cache.close()
        if self.rate_limiter is not None:
            self.rate_limiter.close()
        logger.info("Application resources closed")


@asynccontextmanager
async def app_resources(settings: Optional[Settings] = None) -> AsyncIterator[AppResources]:
    settings = settings or get_settings()
    logger.info(f"Starting {settings.app_name} in {settings.app_env} mode...")
    resources = AppResources.create(settings)
    try:
        yield resources
    finally:
        logger.info(f"Shutting down {settings.app_name}...")
        resources.close()
