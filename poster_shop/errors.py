class PosterShopError(Exception):
    """Base for errors surfaced to API callers as ``{"detail": message}``."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PosterShopError):
    """Bad or missing client input."""

    status_code = 400


class InvalidFileType(ValidationError):
    pass


class FileTooLarge(ValidationError):
    status_code = 413


class AuthenticationError(PosterShopError):
    """Webhook signature did not verify."""

    status_code = 400


class MalformedEventError(PosterShopError):
    """Webhook was signed correctly but could not be understood."""

    status_code = 400


class UpstreamError(PosterShopError):
    """Payment processor could not be reached or refused the request."""

    status_code = 502


class NotFound(PosterShopError):
    status_code = 404
