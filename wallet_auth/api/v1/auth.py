from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from web3 import Web3

from wallet_auth.core.deps import get_auth_service
from wallet_auth.core.errors import AuthError, AuthFailure
from wallet_auth.models.user import User
from wallet_auth.schemas.auth import FailureDetail, FailureOut, NonceResponse, SignInRequest, UserOut
from wallet_auth.services.authentication import EthAuthenticationService

router = APIRouter()

FAILURE_STATUS = {
    AuthFailure.RATE_LIMITED: 429,
    AuthFailure.INVALID_ADDRESS: 400,
    AuthFailure.USER_PERSISTENCE_FAILURE: 503,
}


# HTTPException wraps the body as {"detail": FailureOut}
def failure_docs(*statuses: int) -> dict:
    return {status: {"model": FailureDetail} for status in statuses}


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def failure_response(failure: AuthFailure, message: str) -> HTTPException:
    # reason code and short message only; never nonce values or internals
    return HTTPException(
        status_code=FAILURE_STATUS.get(failure, 422),
        detail=FailureOut(reason=failure.value, message=message).model_dump(),
    )


def user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        eth_address=user.eth_address,
        checksum_address=Web3.to_checksum_address(user.eth_address),
        display_address=user.display_address,
    )


@router.get(
    "/users/{eth_address}/nonce",
    response_model=NonceResponse,
    responses=failure_docs(400, 429, 503),
)
def issue_nonce(
    eth_address: str,
    request: Request,
    service: EthAuthenticationService = Depends(get_auth_service),
):
    try:
        nonce = service.issue_nonce(eth_address, client_ip(request))
    except AuthError as exc:
        raise failure_response(exc.failure, exc.message)
    return NonceResponse(nonce=nonce)


@router.post("/session", response_model=UserOut, responses=failure_docs(422, 429, 503))
def sign_in(
    payload: SignInRequest,
    request: Request,
    service: EthAuthenticationService = Depends(get_auth_service),
):
    result = service.authenticate(
        eth_address=payload.eth_address,
        message=payload.message,
        signature=payload.signature,
        client_ip=client_ip(request),
    )
    if not result.success:
        raise failure_response(result.failure, result.message)
    return user_out(result.user)
