class NotFoundError(Exception):
    """Resource not found"""
    pass


class AuthenticationError(Exception):
    """Catalog storage rejected the request credentials."""
    pass


class InvalidResponseError(Exception):
    """Catalog storage returned a payload that could not be parsed."""
    pass
