"""Custom exceptions for Athena JDBC option resolution."""

from typing import Optional, Sequence


class AthenaOptionsError(ValueError):
    """Base exception for Athena JDBC option errors."""

    def __init__(self, message: str, option: Optional[str] = None):
        super().__init__(message)
        self.option = option


class MissingRequiredOption(AthenaOptionsError):
    """Raised when a required option is absent."""

    def __init__(self, option: str):
        super().__init__(f"Option '{option}' is required.", option=option)


class RegionResolutionError(AthenaOptionsError):
    """Raised when no AWS region is configured or discoverable."""
    pass


class InvalidPartitionSpec(AthenaOptionsError):
    """Raised when partitionColumn is given without its companion options."""

    def __init__(self, message: str, option: str, missing: Sequence[str]):
        super().__init__(message, option=option)
        self.missing = list(missing)


class InvalidOptionValue(AthenaOptionsError):
    """Raised when an option value cannot be parsed or is out of range."""

    def __init__(self, message: str, option: str, minimum: Optional[int] = None):
        super().__init__(message, option=option)
        self.minimum = minimum


class UnknownIsolationLevel(AthenaOptionsError):
    """Raised when isolationLevel names no known transaction isolation level."""

    def __init__(self, message: str, option: str, value: str):
        super().__init__(message, option=option)
        self.value = value


class StagingLocationResolutionError(AthenaOptionsError):
    """Raised when the default S3 staging directory cannot be derived."""
    pass


class DriverResolutionError(AthenaOptionsError):
    """Raised when the driver registry cannot register or resolve a driver."""
    pass
