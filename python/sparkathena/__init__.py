"""sparkathena - Spark JDBC options for AWS Athena."""

__version__ = "0.1.0"
