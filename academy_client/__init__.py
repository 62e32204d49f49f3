"""Python client for the Academy API."""
from .api import AcademyApi, ApiError, NETWORK_ERROR
from .state import ApiMutation, ApiQuery
from .storage import JsonFileStorage, MemoryStorage
from .user_state import UserStateStore

__all__ = [
    "AcademyApi",
    "ApiError",
    "ApiMutation",
    "ApiQuery",
    "JsonFileStorage",
    "MemoryStorage",
    "NETWORK_ERROR",
    "UserStateStore",
]
