from .auth import (
    NonceResponse,
    SignInRequest,
    UserOut,
    FailureOut,
    FailureDetail,
)

__all__ = [
    "NonceResponse",
    "SignInRequest",
    "UserOut",
    "FailureOut",
    "FailureDetail",
]
