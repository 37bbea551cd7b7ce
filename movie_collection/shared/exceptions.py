"""
Error taxonomy shared by the store, the catalog client and the API
"""


class MovieCollectionError(Exception):
    """Base class for errors surfaced to API callers"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MovieCollectionError):
    """Bad or missing input"""
    status_code = 400


class NotFoundError(MovieCollectionError):
    """No such record, or no upstream match"""
    status_code = 404


class ConflictError(MovieCollectionError):
    """Duplicate external catalog ID"""
    status_code = 400


class UpstreamError(MovieCollectionError):
    """Transport failure or timeout talking to the external catalog"""
    status_code = 500


class StoreError(MovieCollectionError):
    """Persistence failure, or persistence not configured"""
    status_code = 500


class ConfigurationError(MovieCollectionError):
    """Required setting missing, such as the OMDB API key"""
    status_code = 500
