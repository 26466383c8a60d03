"""API layer package for FastAPI application and route composition."""

from .access_policy import OWNER_HEADER_NAME, HeaderOwnerAccessPolicy, RecordAccessPolicyPort
from .application import create_api_application

__all__ = ["HeaderOwnerAccessPolicy", "OWNER_HEADER_NAME", "RecordAccessPolicyPort", "create_api_application"]
