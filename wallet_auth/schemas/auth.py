from pydantic import BaseModel, Field


class NonceResponse(BaseModel):
    nonce: str


class SignInRequest(BaseModel):
    eth_address: str = Field(..., description="0x-prefixed wallet address")
    message: str = Field(..., description="Signed challenge: domain,uri,chainId,appName,timestamp,nonce")
    signature: str = Field(..., description="personal_sign signature, hex encoded")


class UserOut(BaseModel):
    id: int
    eth_address: str
    checksum_address: str
    display_address: str


class FailureOut(BaseModel):
    reason: str
    message: str


class FailureDetail(BaseModel):
    detail: FailureOut
