"""
Error taxonomy for the storefront API.

Every service-level failure is raised as one of these exceptions. They are
DRF ``APIException`` subclasses so the REST layer maps them onto HTTP status
codes without per-view translation:

- ValidationError   -> 400 (missing or malformed input)
- UnauthorizedError -> 401 (no usable identity)
- ForbiddenError    -> 403 (identity lacks rights on the resource)
- NotFoundError     -> 404 (unknown order, review or product)
- InvalidStateError -> 400 (transition not allowed from the current state)
- DuplicateError    -> 400 (uniqueness constraint violated)
- InternalError     -> 500 (storage or unexpected failure)
"""

from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.exceptions import APIException


class StorefrontError(APIException):
    """Base class for all storefront service errors."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _("Request could not be processed.")
    default_code = "error"


class ValidationError(StorefrontError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _("Invalid input.")
    default_code = "validation_error"


class UnauthorizedError(StorefrontError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = _("Unauthorized")
    default_code = "unauthorized"


class ForbiddenError(StorefrontError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = _("Forbidden")
    default_code = "forbidden"


class NotFoundError(StorefrontError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = _("Not found.")
    default_code = "not_found"


class InvalidStateError(StorefrontError):
    """Raised when a state transition is not permitted from the current state."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _("Operation not allowed in the current state.")
    default_code = "invalid_state"


class DuplicateError(StorefrontError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _("Resource already exists.")
    default_code = "duplicate"


class InternalError(StorefrontError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = _("Internal server error")
    default_code = "internal_error"
