"""Tests for AWS region and account lookups."""

import types

import boto3
import pytest
from botocore.exceptions import ClientError
from botocore.stub import Stubber

from sparkathena.jdbc.aws import AwsEnvironment


class FakeRegionFetcher:
    def __init__(self, region):
        self.region = region
        self.calls = 0

    def retrieve_region(self):
        self.calls += 1
        return self.region


def _session(region_name=None):
    return boto3.Session(
        aws_access_key_id="AKIDEXAMPLE",
        aws_secret_access_key="secret",
        region_name=region_name,
    )


@pytest.fixture
def clean_aws_env(monkeypatch, tmp_path):
    """Hide any region configured on the machine running the tests."""
    for name in ("AWS_REGION", "AWS_DEFAULT_REGION", "AWS_PROFILE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AWS_CONFIG_FILE", str(tmp_path / "config"))
    monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(tmp_path / "credentials"))


class TestCurrentRegion:
    """Test ambient region resolution."""

    def test_session_region(self):
        fetcher = FakeRegionFetcher("eu-west-1")
        env = AwsEnvironment(session=_session("us-west-2"), region_fetcher=fetcher)

        assert env.current_region() == "us-west-2"
        assert fetcher.calls == 0

    def test_region_from_environment(self, clean_aws_env, monkeypatch):
        monkeypatch.setenv("AWS_DEFAULT_REGION", "ap-southeast-1")
        env = AwsEnvironment(region_fetcher=FakeRegionFetcher(None))

        assert env.current_region() == "ap-southeast-1"

    def test_instance_metadata_fallback(self, clean_aws_env):
        fetcher = FakeRegionFetcher("sa-east-1")
        env = AwsEnvironment(session=_session(), region_fetcher=fetcher)

        assert env.current_region() == "sa-east-1"
        assert fetcher.calls == 1

    def test_instance_metadata_disabled(self, clean_aws_env):
        fetcher = FakeRegionFetcher("sa-east-1")
        env = AwsEnvironment(session=_session(), region_fetcher=fetcher, instance_metadata_region=False)

        assert env.current_region() is None
        assert fetcher.calls == 0

    def test_no_region_anywhere(self, clean_aws_env):
        env = AwsEnvironment(session=_session(), region_fetcher=FakeRegionFetcher(None))
        assert env.current_region() is None


class TestAccountId:
    """Test the STS account lookup."""

    def _env_with_stub(self):
        client = _session("us-east-1").client("sts")
        stubber = Stubber(client)
        calls = []

        def make_client(service_name, **kwargs):
            calls.append((service_name, kwargs))
            return client

        session = types.SimpleNamespace(client=make_client, region_name="us-east-1")
        return AwsEnvironment(session=session), stubber, calls

    def test_account_from_caller_identity(self):
        env, stubber, calls = self._env_with_stub()
        stubber.add_response(
            "get_caller_identity",
            {
                "UserId": "AIDAEXAMPLE",
                "Account": "123456789012",
                "Arn": "arn:aws:iam::123456789012:user/etl",
            },
        )

        with stubber:
            assert env.account_id("us-east-1") == "123456789012"

        stubber.assert_no_pending_responses()
        service_name, kwargs = calls[0]
        assert service_name == "sts"
        assert kwargs["region_name"] == "us-east-1"
        assert kwargs["config"].retries == {"total_max_attempts": 1}

    def test_client_error_propagates(self):
        env, stubber, _ = self._env_with_stub()
        stubber.add_client_error("get_caller_identity", service_error_code="AccessDenied")

        with stubber:
            with pytest.raises(ClientError):
                env.account_id("us-east-1")
