"""Content store access."""

from contentfix.cms.client import (
    AccessError,
    ContentStoreClient,
    ContentStoreError,
    basic_auth_header,
)

__all__ = ["AccessError", "ContentStoreClient", "ContentStoreError", "basic_auth_header"]
