"""DRF exception handler that renders domain errors."""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from events.domain.errors import DomainError, ErrorCode

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.CAPACITY_EXCEEDED: status.HTTP_409_CONFLICT,
    ErrorCode.PAYMENT_PROVIDER_ERROR: status.HTTP_402_PAYMENT_REQUIRED,
    ErrorCode.WEBHOOK_SIGNATURE_INVALID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorCode.REFUND_NOT_ELIGIBLE: status.HTTP_409_CONFLICT,
}


def domain_exception_handler(exc, context):
    if isinstance(exc, DomainError):
        http_status = STATUS_BY_CODE.get(exc.code, status.HTTP_400_BAD_REQUEST)
        view = context.get("view")
        logger.info("%s -> %s %s", view.__class__.__name__ if view else "-", http_status, exc)
        return Response({"code": exc.code.value, "detail": exc.message}, status=http_status)
    return exception_handler(exc, context)
