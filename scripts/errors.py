"""
API error type shared by the services and the route handlers
"""

from typing import Optional


class ApiError(Exception):
    """An error that maps directly onto a JSON error envelope"""

    def __init__(self, status_code: int, error: str, message: Optional[str] = None):
        super().__init__(message or error)
        self.status_code = status_code
        self.error = error
        self.message = message or error

    @staticmethod
    def bad_request(error: str, message: Optional[str] = None) -> 'ApiError':
        return ApiError(400, error, message)

    @staticmethod
    def unauthorized(error: str, message: Optional[str] = None) -> 'ApiError':
        return ApiError(401, error, message)

    @staticmethod
    def forbidden(error: str, message: Optional[str] = None) -> 'ApiError':
        return ApiError(403, error, message)

    @staticmethod
    def not_found(error: str, message: Optional[str] = None) -> 'ApiError':
        return ApiError(404, error, message)

    @staticmethod
    def conflict(error: str, message: Optional[str] = None) -> 'ApiError':
        return ApiError(409, error, message)

    def to_dict(self):
        return {'success': False, 'error': self.error, 'message': self.message}
