"""Athena JDBC options normalization and validation."""

import logging
import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Mapping, Optional, Tuple, Union

from botocore.exceptions import BotoCoreError, ClientError

from ._config import AthenaConfig, load_config
from .aws import AwsEnvironment
from .case_insensitive import CaseInsensitiveMap
from .driver_registry import DriverRegistry, LocalDriverRegistry
from .exceptions import (
    AthenaOptionsError,
    InvalidOptionValue,
    InvalidPartitionSpec,
    MissingRequiredOption,
    RegionResolutionError,
    StagingLocationResolutionError,
    UnknownIsolationLevel,
)
from .utils import mask_secrets

logger = logging.getLogger("sparkathena.jdbc")

JDBC_URL = "url"
JDBC_TABLE_NAME = "dbtable"
JDBC_DRIVER_CLASS = "driver"
JDBC_PARTITION_COLUMN = "partitionColumn"
JDBC_LOWER_BOUND = "lowerBound"
JDBC_UPPER_BOUND = "upperBound"
JDBC_NUM_PARTITIONS = "numPartitions"
JDBC_BATCH_FETCH_SIZE = "fetchsize"
JDBC_TRUNCATE = "truncate"
JDBC_CREATE_TABLE_OPTIONS = "createTableOptions"
JDBC_CREATE_TABLE_COLUMN_TYPES = "createTableColumnTypes"
JDBC_BATCH_INSERT_SIZE = "batchsize"
JDBC_TXN_ISOLATION_LEVEL = "isolationLevel"
ATHENA_REGION = "region"

# Options consumed by the data source itself; never forwarded to the driver.
JDBC_OPTION_NAMES = (
    JDBC_URL,
    JDBC_TABLE_NAME,
    JDBC_DRIVER_CLASS,
    JDBC_PARTITION_COLUMN,
    JDBC_LOWER_BOUND,
    JDBC_UPPER_BOUND,
    JDBC_NUM_PARTITIONS,
    JDBC_BATCH_FETCH_SIZE,
    JDBC_TRUNCATE,
    JDBC_CREATE_TABLE_OPTIONS,
    JDBC_CREATE_TABLE_COLUMN_TYPES,
    JDBC_BATCH_INSERT_SIZE,
    JDBC_TXN_ISOLATION_LEVEL,
    ATHENA_REGION,
)
_RESERVED_NAMES = frozenset(name.lower() for name in JDBC_OPTION_NAMES)

ATHENA_URL_TEMPLATE = "jdbc:awsathena://athena.{region}.amazonaws.com:443"
S3_STAGING_DIR = "s3_staging_dir"
CREDENTIALS_PROVIDER_CLASS = "aws_credentials_provider_class"

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_INT32_RANGE = (-(2**31), 2**31 - 1)
_INT64_RANGE = (-(2**63), 2**63 - 1)


def is_reserved_option(name: str) -> bool:
    """Return True if ``name`` is consumed by the data source (case-insensitive)."""
    return name.lower() in _RESERVED_NAMES


class IsolationLevel(IntEnum):
    """Transaction isolation levels, valued as java.sql.Connection constants."""

    NONE = 0
    READ_UNCOMMITTED = 1
    READ_COMMITTED = 2
    REPEATABLE_READ = 4
    SERIALIZABLE = 8


@dataclass(frozen=True)
class ResolvedJDBCOptions:
    """Validated Athena JDBC settings."""

    url: str
    table: str
    driver_class: str
    num_partitions: Optional[int] = None
    partition_column: Optional[str] = None
    lower_bound: Optional[int] = None
    upper_bound: Optional[int] = None
    fetch_size: int = 0
    is_truncate: bool = False
    create_table_options: str = ""
    create_table_column_types: Optional[str] = None
    batch_size: int = 1000
    isolation_level: IsolationLevel = IsolationLevel.READ_UNCOMMITTED


def _parse_int(name: str, value: str, bounds: Tuple[int, int] = _INT32_RANGE) -> int:
    if not _INT_PATTERN.fullmatch(value):
        raise InvalidOptionValue(f"{name} must be an integer, got: {value}", option=name)
    result = int(value)
    low, high = bounds
    if not low <= result <= high:
        raise InvalidOptionValue(
            f"{name} must be between {low} and {high}, got: {value}", option=name
        )
    return result


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise InvalidOptionValue(f"{name} must be 'true' or 'false', got: {value}", option=name)


class AthenaJDBCOptions:
    """
    Options for the Athena JDBC data source.

    Resolves a case-insensitive option map into ``ResolvedJDBCOptions``
    and derives the property sets handed to the Athena JDBC driver.
    Every validation runs in the constructor; an instance that exists is
    valid. Only the staging-directory lookup in
    ``as_connection_properties()`` is deferred, because it calls AWS.

    Example:
        options = AthenaJDBCOptions({
            "dbtable": "sales.orders",
            "region": "us-west-2",
            "numPartitions": "8",
        })
        options.resolved.url
        # 'jdbc:awsathena://athena.us-west-2.amazonaws.com:443'
    """

    def __init__(
        self,
        parameters: Union[CaseInsensitiveMap, Mapping[str, str]],
        driver_registry: Optional[DriverRegistry] = None,
        aws: Optional[AwsEnvironment] = None,
        config: Optional[AthenaConfig] = None,
    ):
        """
        Args:
            parameters: Data source options, keys matched case-insensitively
            driver_registry: Registry the driver class is registered with
            aws: Region/account lookups; defaults to the ambient boto3 session
            config: Library defaults; loaded from env/YAML when omitted

        Raises:
            AthenaOptionsError: If any option is missing, malformed or inconsistent
        """
        if not isinstance(parameters, CaseInsensitiveMap):
            parameters = CaseInsensitiveMap(parameters)
        self.parameters = parameters
        self.config = config if config is not None else load_config()
        self.driver_registry = driver_registry if driver_registry is not None else LocalDriverRegistry()
        self.aws = aws if aws is not None else AwsEnvironment(
            instance_metadata_region=self.config.instance_metadata_region,
            sts_timeout_sec=self.config.sts_timeout_sec,
        )
        self.region: Optional[str] = None
        self._connection_properties: Optional[Dict[str, str]] = None
        self._connection_error: Optional[StagingLocationResolutionError] = None

        logger.debug(f"Resolving Athena JDBC options: {mask_secrets(parameters)}")
        self.resolved = self._resolve()
        logger.info(f"Resolved Athena JDBC url {self.resolved.url} with driver {self.resolved.driver_class}")

    @classmethod
    def from_url_and_table(
        cls,
        url: str,
        table: str,
        parameters: Mapping[str, str],
        **kwargs,
    ) -> "AthenaJDBCOptions":
        """
        Build options from an explicit url and table plus extra parameters.

        ``url`` and ``table`` override any same-named entry in ``parameters``,
        whatever its casing.
        """
        merged = CaseInsensitiveMap(parameters)
        merged = merged.updated(JDBC_URL, url).updated(JDBC_TABLE_NAME, table)
        return cls(merged, **kwargs)

    # ------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------
    def _resolve(self) -> ResolvedJDBCOptions:
        params = self.parameters

        if JDBC_TABLE_NAME not in params:
            raise MissingRequiredOption(JDBC_TABLE_NAME)

        url = self._resolve_url()
        table = params[JDBC_TABLE_NAME]
        driver_class = self._resolve_driver_class(url)

        num_partitions = None
        if JDBC_NUM_PARTITIONS in params:
            num_partitions = _parse_int(JDBC_NUM_PARTITIONS, params[JDBC_NUM_PARTITIONS])

        partition_column = params.get(JDBC_PARTITION_COLUMN)
        lower_bound = None
        if JDBC_LOWER_BOUND in params:
            lower_bound = _parse_int(JDBC_LOWER_BOUND, params[JDBC_LOWER_BOUND], _INT64_RANGE)
        upper_bound = None
        if JDBC_UPPER_BOUND in params:
            upper_bound = _parse_int(JDBC_UPPER_BOUND, params[JDBC_UPPER_BOUND], _INT64_RANGE)

        if partition_column is not None:
            companions = {
                JDBC_LOWER_BOUND: lower_bound,
                JDBC_UPPER_BOUND: upper_bound,
                JDBC_NUM_PARTITIONS: num_partitions,
            }
            missing = [name for name, value in companions.items() if value is None]
            if missing:
                raise InvalidPartitionSpec(
                    f"If '{JDBC_PARTITION_COLUMN}' is specified then '{JDBC_LOWER_BOUND}', "
                    f"'{JDBC_UPPER_BOUND}', and '{JDBC_NUM_PARTITIONS}' are required; "
                    f"missing: {', '.join(missing)}",
                    option=JDBC_PARTITION_COLUMN,
                    missing=missing,
                )

        fetch_size = _parse_int(JDBC_BATCH_FETCH_SIZE, params.get(JDBC_BATCH_FETCH_SIZE, "0"))
        if fetch_size < 0:
            raise InvalidOptionValue(
                f"Invalid value `{fetch_size}` for parameter `{JDBC_BATCH_FETCH_SIZE}`. "
                "The minimum value is 0. When the value is 0, "
                "the JDBC driver ignores the value and does the estimates.",
                option=JDBC_BATCH_FETCH_SIZE,
                minimum=0,
            )

        is_truncate = _parse_bool(JDBC_TRUNCATE, params.get(JDBC_TRUNCATE, "false"))
        create_table_options = params.get(JDBC_CREATE_TABLE_OPTIONS, "")
        create_table_column_types = params.get(JDBC_CREATE_TABLE_COLUMN_TYPES)

        batch_size = _parse_int(JDBC_BATCH_INSERT_SIZE, params.get(JDBC_BATCH_INSERT_SIZE, "1000"))
        if batch_size < 1:
            raise InvalidOptionValue(
                f"Invalid value `{batch_size}` for parameter `{JDBC_BATCH_INSERT_SIZE}`. "
                "The minimum value is 1.",
                option=JDBC_BATCH_INSERT_SIZE,
                minimum=1,
            )

        level_name = params.get(JDBC_TXN_ISOLATION_LEVEL, "READ_UNCOMMITTED")
        # Exact, case-sensitive match against the enum member names.
        if level_name not in IsolationLevel.__members__:
            raise UnknownIsolationLevel(
                f"Invalid value `{level_name}` for parameter `{JDBC_TXN_ISOLATION_LEVEL}`. "
                f"Must be one of: {', '.join(IsolationLevel.__members__)}",
                option=JDBC_TXN_ISOLATION_LEVEL,
                value=level_name,
            )

        return ResolvedJDBCOptions(
            url=url,
            table=table,
            driver_class=driver_class,
            num_partitions=num_partitions,
            partition_column=partition_column,
            lower_bound=lower_bound,
            upper_bound=upper_bound,
            fetch_size=fetch_size,
            is_truncate=is_truncate,
            create_table_options=create_table_options,
            create_table_column_types=create_table_column_types,
            batch_size=batch_size,
            isolation_level=IsolationLevel[level_name],
        )

    def _resolve_region(self) -> str:
        if ATHENA_REGION in self.parameters:
            return self.parameters[ATHENA_REGION]
        try:
            region = self.aws.current_region()
        except BotoCoreError as err:
            logger.error(f"Could not determine the AWS region: {err}")
            raise RegionResolutionError(
                f"Option '{ATHENA_REGION}' is not set and the default AWS region lookup failed: {err}",
                option=ATHENA_REGION,
            ) from err
        if not region:
            raise RegionResolutionError(
                f"Option '{ATHENA_REGION}' is not set and no default AWS region could be found. "
                "Set the option or AWS_REGION, or run where instance metadata is reachable.",
                option=ATHENA_REGION,
            )
        return region

    def _resolve_url(self) -> str:
        if JDBC_URL in self.parameters:
            logger.warning(
                f"Ignoring option '{JDBC_URL}'; the Athena endpoint is derived from '{ATHENA_REGION}'"
            )
        self.region = self._resolve_region()
        return ATHENA_URL_TEMPLATE.format(region=self.region)

    def _resolve_driver_class(self, url: str) -> str:
        driver_class = self.parameters.get(JDBC_DRIVER_CLASS) or self.config.default_driver_class
        if driver_class:
            self.driver_registry.register(driver_class)
            return driver_class

        # Pinned at construction: executors must load the class picked here.
        return self.driver_registry.driver_class_for(url)

    # ------------------------------------------------------------
    # Property views
    # ------------------------------------------------------------
    def as_properties(self) -> Dict[str, str]:
        """
        Return all options with their original casing.

        Returns:
            Fresh dict of every option, in insertion order
        """
        return self.parameters.original

    def as_connection_properties(self) -> Dict[str, str]:
        """
        Return the options to pass to the Athena JDBC driver.

        Data source options such as ``url``, ``dbtable`` and ``numPartitions``
        are removed, since each driver has its own property list. When absent,
        ``s3_staging_dir`` is derived from the account id and region, and the
        instance-profile credentials provider is selected if neither ``user``
        nor ``password`` is given.

        The ``s3_staging_dir``, ``user`` and ``password`` presence checks
        ignore key case like every other option, so ``S3_Staging_Dir`` or
        ``User`` count as set. Drivers reading ``java.util.Properties``
        compare these keys case-sensitively.

        Computed once per instance; later calls return a copy of the first
        result (or raise the first error again).

        Returns:
            Fresh dict of connection properties

        Raises:
            StagingLocationResolutionError: If the staging directory cannot be derived
        """
        if self._connection_error is not None:
            raise self._connection_error
        if self._connection_properties is None:
            try:
                self._connection_properties = self._build_connection_properties()
            except StagingLocationResolutionError as err:
                self._connection_error = err
                raise
        return dict(self._connection_properties)

    def _build_connection_properties(self) -> Dict[str, str]:
        properties = {
            key: value
            for key, value in self.parameters.original.items()
            if not is_reserved_option(key)
        }
        present = CaseInsensitiveMap(properties)

        if S3_STAGING_DIR not in present:
            properties[S3_STAGING_DIR] = self._default_staging_dir()

        if "user" not in present and "password" not in present:
            properties[CREDENTIALS_PROVIDER_CLASS] = self.config.credentials_provider_class

        logger.debug(f"Athena connection properties: {mask_secrets(properties)}")
        return properties

    def _default_staging_dir(self) -> str:
        region = self.region
        try:
            account = self.aws.account_id(region)
        except (AthenaOptionsError, BotoCoreError, ClientError, KeyError) as err:
            logger.error(f"Could not derive {S3_STAGING_DIR}: {err}")
            raise StagingLocationResolutionError(
                f"Option '{S3_STAGING_DIR}' is not set and could not be derived: {err}",
                option=S3_STAGING_DIR,
            ) from err

        staging_dir = f"s3://{self.config.staging_bucket_prefix}-{account}-{region}/"
        logger.info(f"Using default {S3_STAGING_DIR} {staging_dir}")
        return staging_dir
