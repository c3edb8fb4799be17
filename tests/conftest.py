"""Pytest configuration for all tests."""

from hypothesis import HealthCheck, settings

settings.register_profile(
    "notifier",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)
settings.load_profile("notifier")
