from fastapi import FastAPI

from wrapped.api.routes.stats import router as stats_router
from wrapped.core.middleware import StatsRateLimitMiddleware
from wrapped.core.observability import configure_logging
from wrapped.core.observability import init_sentry
from wrapped.services.stats_cache import StatsCache
from wrapped.services.stats_service import build_stats_cache
from wrapped.settings import Settings


def create_app(
    app_settings: Settings | None = None, stats_cache: StatsCache | None = None
) -> FastAPI:
    """Build the FastAPI application with routes, middleware and the stats cache."""

    if app_settings is None:
        app_settings = Settings()
    if stats_cache is None:
        stats_cache = build_stats_cache(app_settings)

    configure_logging(app_settings)
    init_sentry(app_settings)

    app = FastAPI(title="GitHub Wrapped")
    app.state.settings = app_settings
    app.state.stats_cache = stats_cache
    app.add_middleware(
        StatsRateLimitMiddleware,
        requests_per_window=app_settings.rate_limit_per_minute,
        window_seconds=app_settings.rate_limit_window_seconds,
    )
    app.include_router(stats_router)
    return app


app = create_app()
