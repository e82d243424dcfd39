"""Athena JDBC options for Spark.

Parses the options of a Spark JDBC read/write against AWS Athena into
validated settings, and derives the property sets handed to the Athena
JDBC driver.

Usage:
    from sparkathena.jdbc import AthenaJDBCOptions

    options = AthenaJDBCOptions({
        "dbtable": "sales.orders",
        "region": "eu-west-1",
        "partitionColumn": "order_id",
        "lowerBound": "1",
        "upperBound": "1000000",
        "numPartitions": "10",
    })

    options.resolved.url              # jdbc:awsathena://athena.eu-west-1.amazonaws.com:443
    options.resolved.num_partitions   # 10
    options.as_connection_properties()
    # {'s3_staging_dir': 's3://aws-athena-query-results-<account>-eu-west-1/',
    #  'aws_credentials_provider_class': 'com.amazonaws.auth.InstanceProfileCredentialsProvider'}

With a running SparkSession, register drivers in the JVM instead:
    from sparkathena.jdbc import SparkDriverRegistry

    options = AthenaJDBCOptions(opts, driver_registry=SparkDriverRegistry(spark))
"""

import logging

from sparkathena.jdbc.aws import AwsEnvironment
from sparkathena.jdbc.case_insensitive import CaseInsensitiveMap
from sparkathena.jdbc.driver_registry import DriverRegistry, LocalDriverRegistry, SparkDriverRegistry
from sparkathena.jdbc.exceptions import (
    AthenaOptionsError,
    DriverResolutionError,
    InvalidOptionValue,
    InvalidPartitionSpec,
    MissingRequiredOption,
    RegionResolutionError,
    StagingLocationResolutionError,
    UnknownIsolationLevel,
)
from sparkathena.jdbc.jdbc_options import (
    JDBC_OPTION_NAMES,
    AthenaJDBCOptions,
    IsolationLevel,
    ResolvedJDBCOptions,
    is_reserved_option,
)

__all__ = [
    "AthenaJDBCOptions",
    "ResolvedJDBCOptions",
    "IsolationLevel",
    "JDBC_OPTION_NAMES",
    "is_reserved_option",
    "CaseInsensitiveMap",
    "AwsEnvironment",
    "DriverRegistry",
    "LocalDriverRegistry",
    "SparkDriverRegistry",
    # Exceptions
    "AthenaOptionsError",
    "MissingRequiredOption",
    "RegionResolutionError",
    "InvalidPartitionSpec",
    "InvalidOptionValue",
    "UnknownIsolationLevel",
    "StagingLocationResolutionError",
    "DriverResolutionError",
]

# Set up logging
logger = logging.getLogger("sparkathena.jdbc")
logger.setLevel(logging.INFO)

# Add console handler if not already added
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setLevel(logging.INFO)
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)
