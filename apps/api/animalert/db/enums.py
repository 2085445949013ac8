"""Enum definitions for application constants."""

from enum import Enum


class CounterScope(str, Enum):
    """
    Numbering scopes for petition sequence numbers.

    - GLOBAL: one counter shared by every category (totalNo)
    - CATEGORY: one counter per complaint category (objNo)
    """
    GLOBAL = "global"
    CATEGORY = "category"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid scope."""
        return value in cls._value2member_map_


class StorageBackend(str, Enum):
    """Supported object storage backends."""
    S3 = "s3"
    LOCAL = "local"


DEFAULT_DOC_TYPE_NAME = "Petition"
DEFAULT_DOC_TYPE_DESCRIPTION = "Petitii publice"
