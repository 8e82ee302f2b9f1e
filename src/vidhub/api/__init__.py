"""HTTP plumbing shared by the routers."""

from .errors import ApiError, app_error_handler, to_api_error

__all__ = ["ApiError", "app_error_handler", "to_api_error"]
