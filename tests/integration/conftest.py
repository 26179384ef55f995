import sentry_sdk

from people_filter.config import get_settings


def pytest_configure(config):
    settings = get_settings()
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.sentry_environment,
        traces_sample_rate=0.0,
    )
