"""Utility functions for Athena JDBC options."""

from typing import Dict, Mapping

_SECRET_KEYS = frozenset({"password", "secretkey", "aws_secret_access_key", "sessiontoken"})


def mask_secrets(properties: Mapping[str, str]) -> Dict[str, str]:
    """
    Mask credential values in an option map for safe logging.

    Examples:
    - {"user": "admin", "password": "s3cr3t"} → {"user": "admin", "password": "***"}
    - {"Password": "x", "dbtable": "t"} → {"Password": "***", "dbtable": "t"}

    Args:
        properties: Options or connection properties

    Returns:
        Copy of the mapping with secret values replaced by ***
    """
    return {
        key: "***" if key.lower() in _SECRET_KEYS else value
        for key, value in properties.items()
    }
