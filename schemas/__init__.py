from .common import OkResponse, ErrorResponse
from .flat_request import (
     FlatRequestCreate,
     FlatRequestResponse,
     FlatRequestCreatedResponse,
     FlatRequestListResponse,
     FlatRequestApprovedResponse,
)
from .flat import (
     FlatResponse,
     FlatListResponse,
     SetupCodeRequest,
     SetupCodeResponse,
     DisableRequest,
)

__all__ = [
     "OkResponse",
     "ErrorResponse",
     "FlatRequestCreate",
     "FlatRequestResponse",
     "FlatRequestCreatedResponse",
     "FlatRequestListResponse",
     "FlatRequestApprovedResponse",
     "FlatResponse",
     "FlatListResponse",
     "SetupCodeRequest",
     "SetupCodeResponse",
     "DisableRequest",
]
