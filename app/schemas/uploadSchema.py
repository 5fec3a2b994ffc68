from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field

from app.constants.constants import RegistrationStatus, WaitingListStatus


class PaymentProofRecord(BaseModel):
    """The waiting-list entry or registration a payment proof was attached to."""

    id: int
    user_id: int
    event_id: int
    status: Union[RegistrationStatus, WaitingListStatus]
    payment_proof: Optional[str] = None

    class Config:
        from_attributes = True


class EventQrCode(BaseModel):
    id: int
    title: str
    host_id: int
    qr_code: Optional[str] = None

    class Config:
        from_attributes = True


class PaymentProofUploadResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    payment_proof: str = Field(alias="paymentProof")
    record: Optional[PaymentProofRecord] = None


class QrCodeUploadResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    qr_code: str = Field(alias="qrCode")
    is_temporary: bool = Field(alias="isTemporary")
    temp_event_id: Optional[str] = Field(default=None, alias="tempEventId")
    event: Optional[EventQrCode] = None


class AssociateQrCodeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    temp_event_id: str = Field(..., min_length=1, alias="tempEventId")
    real_event_id: int = Field(..., alias="realEventId")
    qr_code_url: str = Field(..., min_length=1, alias="qrCodeUrl")


class UploadActionResponse(BaseModel):
    success: bool = True
    message: str
    event: Optional[EventQrCode] = None
