"""Tests for JDBC driver registries."""

import types
from unittest import mock

import pytest
from py4j.protocol import Py4JError

from sparkathena.jdbc.driver_registry import LocalDriverRegistry, SparkDriverRegistry
from sparkathena.jdbc.exceptions import DriverResolutionError

ATHENA_URL = "jdbc:awsathena://athena.us-east-1.amazonaws.com:443"


class TestLocalDriverRegistry:
    """Test the in-process registry."""

    def test_default_athena_driver(self):
        registry = LocalDriverRegistry()
        assert registry.driver_class_for(ATHENA_URL) == "com.amazonaws.athena.jdbc.AthenaDriver"

    def test_register_is_idempotent(self):
        registry = LocalDriverRegistry()
        registry.register("com.example.Driver")
        registry.register("com.example.Driver")

        assert registry.registered == ["com.example.Driver"]

    def test_register_prefix(self):
        registry = LocalDriverRegistry({})
        registry.register_prefix("jdbc:awsathena:", "com.simba.athena.jdbc.Driver")

        assert registry.driver_class_for(ATHENA_URL) == "com.simba.athena.jdbc.Driver"

    def test_unknown_url(self):
        with pytest.raises(DriverResolutionError, match="No suitable driver found for jdbc:postgresql"):
            LocalDriverRegistry().driver_class_for("jdbc:postgresql://localhost/db")


class TestSparkDriverRegistry:
    """Test the JVM-backed registry against a fake Py4J gateway."""

    def _spark(self):
        return types.SimpleNamespace(_jvm=mock.MagicMock())

    def test_register_calls_spark_driver_registry(self):
        spark = self._spark()
        SparkDriverRegistry(spark).register("com.amazonaws.athena.jdbc.AthenaDriver")

        register = spark._jvm.org.apache.spark.sql.execution.datasources.jdbc.DriverRegistry.register
        register.assert_called_once_with("com.amazonaws.athena.jdbc.AthenaDriver")

    def test_driver_class_for_asks_driver_manager(self):
        spark = self._spark()
        driver = spark._jvm.java.sql.DriverManager.getDriver.return_value
        driver.getClass.return_value.getCanonicalName.return_value = "com.simba.athena.jdbc.Driver"

        assert SparkDriverRegistry(spark).driver_class_for(ATHENA_URL) == "com.simba.athena.jdbc.Driver"
        spark._jvm.java.sql.DriverManager.getDriver.assert_called_once_with(ATHENA_URL)

    def test_register_failure(self):
        spark = self._spark()
        jdbc = spark._jvm.org.apache.spark.sql.execution.datasources.jdbc
        jdbc.DriverRegistry.register.side_effect = Py4JError("ClassNotFoundException")

        with pytest.raises(DriverResolutionError, match="Failed to register JDBC driver") as excinfo:
            SparkDriverRegistry(spark).register("com.missing.Driver")

        assert excinfo.value.option == "driver"
        assert isinstance(excinfo.value.__cause__, Py4JError)

    def test_lookup_failure(self):
        spark = self._spark()
        spark._jvm.java.sql.DriverManager.getDriver.side_effect = Py4JError("No suitable driver")

        with pytest.raises(DriverResolutionError, match="No suitable driver found"):
            SparkDriverRegistry(spark).driver_class_for(ATHENA_URL)
