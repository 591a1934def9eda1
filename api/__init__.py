# api/__init__.py
from .http import ApiError

__all__ = ["ApiError"]
