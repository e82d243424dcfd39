"""Shared fixtures for Athena JDBC option tests."""

from typing import Optional

import pytest

from sparkathena.jdbc._config import AthenaConfig
from sparkathena.jdbc.driver_registry import LocalDriverRegistry
from sparkathena.jdbc.jdbc_options import AthenaJDBCOptions

ACCOUNT_ID = "123456789012"


class FakeAwsEnvironment:
    """Stand-in for AwsEnvironment that counts lookups."""

    def __init__(
        self,
        region: Optional[str] = "us-east-1",
        account: str = ACCOUNT_ID,
        error: Optional[Exception] = None,
        region_error: Optional[Exception] = None,
    ):
        self.region = region
        self.account = account
        self.error = error
        self.region_error = region_error
        self.region_calls = 0
        self.account_calls = []

    def current_region(self) -> Optional[str]:
        self.region_calls += 1
        if self.region_error is not None:
            raise self.region_error
        return self.region

    def account_id(self, region: Optional[str] = None) -> str:
        self.account_calls.append(region)
        if self.error is not None:
            raise self.error
        return self.account


@pytest.fixture
def aws():
    return FakeAwsEnvironment()


@pytest.fixture
def registry():
    return LocalDriverRegistry()


@pytest.fixture
def config():
    return AthenaConfig()


@pytest.fixture
def make_options(aws, registry, config):
    """Build AthenaJDBCOptions wired to the fake collaborators."""

    def _make(parameters, **overrides):
        kwargs = {"aws": aws, "driver_registry": registry, "config": config}
        kwargs.update(overrides)
        return AthenaJDBCOptions(parameters, **kwargs)

    return _make


@pytest.fixture
def fake_aws():
    """Factory for FakeAwsEnvironment instances with custom behaviour."""
    return FakeAwsEnvironment
