import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .exceptions import (
    ContractError,
    FailedPrecondition,
    GatewayError,
    InvalidArgument,
    InvalidState,
    NotFound,
    PermissionDenied,
)

logger = logging.getLogger(__name__)

STATUS_CODES = {
    InvalidArgument: status.HTTP_400_BAD_REQUEST,
    FailedPrecondition: status.HTTP_409_CONFLICT,
    InvalidState: status.HTTP_409_CONFLICT,
    PermissionDenied: status.HTTP_403_FORBIDDEN,
    NotFound: status.HTTP_404_NOT_FOUND,
    GatewayError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def contract_exception_handler(exc, context):
    """
    Render ContractError subclasses as {"error": code, "detail": message, ...}.

    Everything else falls through to the default DRF handler, which also
    covers unauthenticated callers.
    """
    if not isinstance(exc, ContractError):
        return exception_handler(exc, context)

    status_code = status.HTTP_400_BAD_REQUEST
    for error_class, code in STATUS_CODES.items():
        if isinstance(exc, error_class):
            status_code = code
            break

    if status_code >= 500:
        logger.error("Request failed: %s", exc)

    data = {'error': exc.code, 'detail': exc.message}
    data.update(exc.details)
    return Response(data, status=status_code)
