"""Driver registries consulted when resolving the JDBC driver class."""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

from py4j.protocol import Py4JError

from ._config import DEFAULT_DRIVER_CLASS
from .exceptions import DriverResolutionError

logger = logging.getLogger("sparkathena.jdbc")

ATHENA_URL_PREFIX = "jdbc:awsathena:"


class DriverRegistry(ABC):
    """Abstract interface for a JDBC driver registry/manager."""

    @abstractmethod
    def register(self, class_name: str) -> None:
        """
        Make a driver class available to the runtime.

        Args:
            class_name: Fully-qualified driver class name

        Raises:
            DriverResolutionError: If the driver cannot be registered
        """
        pass

    @abstractmethod
    def driver_class_for(self, url: str) -> str:
        """
        Get the canonical class name of the driver that would handle ``url``.

        Args:
            url: JDBC URL

        Returns:
            Fully-qualified driver class name

        Raises:
            DriverResolutionError: If no registered driver accepts the URL
        """
        pass


class LocalDriverRegistry(DriverRegistry):
    """
    In-process registry keyed by JDBC URL prefix.

    Used when no JVM is around (unit tests, option validation on the client).
    Drivers registered by class name alone are recorded but only the prefix
    map takes part in URL lookups.
    """

    def __init__(self, drivers: Optional[Dict[str, str]] = None):
        if drivers is None:
            drivers = {ATHENA_URL_PREFIX: DEFAULT_DRIVER_CLASS}
        self._drivers: Dict[str, str] = dict(drivers)
        self.registered: list[str] = []

    def register(self, class_name: str) -> None:
        if class_name not in self.registered:
            self.registered.append(class_name)
            logger.debug(f"Registered JDBC driver {class_name}")

    def register_prefix(self, prefix: str, class_name: str) -> None:
        self._drivers[prefix] = class_name

    def driver_class_for(self, url: str) -> str:
        for prefix, class_name in self._drivers.items():
            if url.startswith(prefix):
                return class_name
        raise DriverResolutionError(f"No suitable driver found for {url}", option="driver")


class SparkDriverRegistry(DriverRegistry):
    """
    Registry backed by the JVM of a running SparkSession.

    Registration goes through Spark's own ``DriverRegistry`` so executors
    load the same class, and lookups ask ``java.sql.DriverManager``.
    """

    def __init__(self, spark):
        """
        Args:
            spark: SparkSession (no type hint to avoid PySpark import)
        """
        self.spark = spark

    @property
    def _jvm(self):
        return self.spark._jvm

    def register(self, class_name: str) -> None:
        try:
            self._jvm.org.apache.spark.sql.execution.datasources.jdbc.DriverRegistry.register(class_name)
        except Py4JError as err:
            raise DriverResolutionError(
                f"Failed to register JDBC driver {class_name}: {err}", option="driver"
            ) from err
        logger.debug(f"Registered JDBC driver {class_name} with Spark")

    def driver_class_for(self, url: str) -> str:
        try:
            driver = self._jvm.java.sql.DriverManager.getDriver(url)
            return driver.getClass().getCanonicalName()
        except Py4JError as err:
            raise DriverResolutionError(f"No suitable driver found for {url}: {err}", option="driver") from err
