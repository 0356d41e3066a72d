"""API request and response models."""

from closer.api.models.control import (
    ClassifyLeadsRequest,
    ClassifyLeadsResponse,
    ControlActionResponse,
    ControlStatusResponse,
    InboundMessageResponse,
    OperatorReplyRequest,
    OperatorReplyResponse,
    SuppressBroadcastRequest,
    SuppressBroadcastResponse,
)
from closer.api.models.errors import ErrorBody, ErrorCode, ErrorDetail, ErrorResponse
from closer.api.models.health import ComponentHealth, HealthResponse

__all__ = [
    "ClassifyLeadsRequest",
    "ClassifyLeadsResponse",
    "ComponentHealth",
    "ControlActionResponse",
    "ControlStatusResponse",
    "ErrorBody",
    "ErrorCode",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
    "InboundMessageResponse",
    "OperatorReplyRequest",
    "OperatorReplyResponse",
    "SuppressBroadcastRequest",
    "SuppressBroadcastResponse",
]
