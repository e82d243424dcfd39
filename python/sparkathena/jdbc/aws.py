"""AWS environment lookups used to default Athena options.

Two questions are answered here, both against the caller's ambient AWS setup:

- which region are we running in (boto3 session, then EC2 instance metadata)
- which account do the ambient credentials belong to (STS GetCallerIdentity)

Neither lookup retries; callers decide what to do on failure.
"""

import logging
from typing import Any, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.utils import InstanceMetadataRegionFetcher

logger = logging.getLogger("sparkathena.jdbc")


class AwsEnvironment:
    """Region and account lookups backed by boto3."""

    def __init__(
        self,
        session: Optional[boto3.Session] = None,
        instance_metadata_region: bool = True,
        sts_timeout_sec: float = 5.0,
        region_fetcher: Optional[Any] = None,
    ):
        """
        Args:
            session: boto3 session to use (created lazily when omitted)
            instance_metadata_region: Ask EC2 instance metadata when the
                session has no region configured
            sts_timeout_sec: Connect/read timeout for the STS call
            region_fetcher: Object with ``retrieve_region()``; defaults to
                botocore's ``InstanceMetadataRegionFetcher``
        """
        self._session = session
        self._instance_metadata_region = instance_metadata_region
        self._sts_timeout_sec = sts_timeout_sec
        self._region_fetcher = region_fetcher

    @property
    def session(self) -> boto3.Session:
        if self._session is None:
            self._session = boto3.Session()
        return self._session

    def current_region(self) -> Optional[str]:
        """
        Return the ambient region, or None if it cannot be determined.

        Checks AWS_REGION / AWS_DEFAULT_REGION / shared config through the
        boto3 session first, then the instance metadata service.
        """
        region = self.session.region_name
        if region:
            return region

        if not self._instance_metadata_region:
            return None

        fetcher = self._region_fetcher
        if fetcher is None:
            fetcher = InstanceMetadataRegionFetcher(timeout=self._sts_timeout_sec, num_attempts=1)
        region = fetcher.retrieve_region()
        if region:
            logger.debug(f"Resolved region {region} from instance metadata")
        return region or None

    def account_id(self, region: Optional[str] = None) -> str:
        """
        Return the AWS account id of the ambient credentials.

        Args:
            region: Region for the STS endpoint

        Raises:
            botocore.exceptions.BotoCoreError: If credentials or the endpoint are unavailable
            botocore.exceptions.ClientError: If STS rejects the call
        """
        client = self.session.client(
            "sts",
            region_name=region,
            config=BotoConfig(
                connect_timeout=self._sts_timeout_sec,
                read_timeout=self._sts_timeout_sec,
                retries={"total_max_attempts": 1},
            ),
        )
        identity = client.get_caller_identity()
        return identity["Account"]
