"""Python client for the CryptoSim REST API."""

from cryptosim.client.api_client import (
    ApiClient,
    ApiError,
    ForbiddenError,
    SessionExpiredError,
    Tokens,
)

__all__ = ["ApiClient", "ApiError", "ForbiddenError", "SessionExpiredError", "Tokens"]
