import logging
from typing import Optional
from fastapi import APIRouter, Depends, Form, UploadFile, File, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.constants import (
    PAYMENT_PROOF_FOLDER,
    QR_CODE_FOLDER,
    TEMPORARY_EVENT_PREFIX,
    PaymentProofOwner,
)
from app.core.database import aget_db
from app.core.security import get_current_user
from app.models.event import Event
from app.models.registration import Registration, WaitingList
from app.models.user import User
from app.schemas.uploadSchema import (
    AssociateQrCodeRequest,
    EventQrCode,
    PaymentProofRecord,
    PaymentProofUploadResponse,
    QrCodeUploadResponse,
    UploadActionResponse,
)
from app.services.S3Service import delete_file_from_s3
from app.utils.uploads.val_upload_image import validate_and_upload_image

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/upload", tags=["uploads"])

PAYMENT_PROOF_MODELS = {
    PaymentProofOwner.waiting_list: WaitingList,
    PaymentProofOwner.registration: Registration,
}


def discard_stored_file(url: str):
    """Best-effort removal of an object no database row points at."""
    try:
        delete_file_from_s3(url)
    except Exception as e:
        logger.error(f"⚠️ Error deleting orphaned upload {url}: {str(e)}", exc_info=True)


def parse_event_id(event_id: str) -> int:
    if not event_id.isdigit():
        raise HTTPException(status_code=400, detail="Invalid event ID")
    return int(event_id)


async def get_hosted_event(db: AsyncSession, event_id: int, current_user: User) -> Event:
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    if event.host_id != current_user.id:
        raise HTTPException(status_code=403, detail="Only the event host can change its QR code")
    return event


async def get_payment_proof_owner(db: AsyncSession, model, record_id: int, current_user: User):
    record = await db.get(model, record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Record not found")
    if record.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not allowed to modify this record")
    return record


@router.post(
    "/payment-proof",
    response_model=PaymentProofUploadResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def upload_payment_proof(
    paymentProof: Optional[UploadFile] = File(None),
    waitingListId: Optional[int] = Form(None),
    registrationId: Optional[int] = Form(None),
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    """
    Upload a payment screenshot to S3.
    With ``waitingListId`` or ``registrationId`` the URL is also saved on that row;
    without either the URL is just returned for the caller to submit later.
    """
    if paymentProof is None or not paymentProof.filename:
        raise HTTPException(status_code=400, detail="Payment proof image is required")

    logger.info(f"Payment proof upload from user {current_user.id}: {paymentProof.filename} ({paymentProof.content_type})")
    file_url = await validate_and_upload_image(paymentProof, PAYMENT_PROOF_FOLDER)

    if waitingListId is None and registrationId is None:
        return PaymentProofUploadResponse(paymentProof=file_url)

    if waitingListId is not None:
        model, record_id = WaitingList, waitingListId
    else:
        model, record_id = Registration, registrationId

    try:
        record = await get_payment_proof_owner(db, model, record_id, current_user)
        record.payment_proof = file_url
        await db.commit()
        await db.refresh(record)
    except HTTPException:
        await db.rollback()
        discard_stored_file(file_url)
        raise
    except Exception as e:
        await db.rollback()
        discard_stored_file(file_url)
        logger.error(f"Payment proof upload error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to upload payment proof")

    logger.info(f"✅ Payment proof attached to {model.__tablename__} #{record.id}")
    return PaymentProofUploadResponse(
        paymentProof=file_url,
        record=PaymentProofRecord.model_validate(record),
    )


@router.post(
    "/qr-code",
    response_model=QrCodeUploadResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def upload_qr_code(
    qrCode: Optional[UploadFile] = File(None),
    eventId: Optional[str] = Form(None),
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    """
    Upload an event's payment QR code.
    Events still being created use a ``temp_`` id; their URL is returned and
    linked later through ``/associate-qr-code``.
    """
    if qrCode is None or not qrCode.filename:
        raise HTTPException(status_code=400, detail="QR code image is required")
    if not eventId:
        raise HTTPException(status_code=400, detail="Event ID is required")

    if eventId.startswith(TEMPORARY_EVENT_PREFIX):
        file_url = await validate_and_upload_image(qrCode, QR_CODE_FOLDER)
        return QrCodeUploadResponse(qrCode=file_url, isTemporary=True, tempEventId=eventId)

    event = await get_hosted_event(db, parse_event_id(eventId), current_user)
    file_url = await validate_and_upload_image(qrCode, QR_CODE_FOLDER)

    try:
        event.qr_code = file_url
        await db.commit()
        await db.refresh(event)
    except Exception as e:
        await db.rollback()
        discard_stored_file(file_url)
        logger.error(f"QR code upload error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to upload QR code")

    return QrCodeUploadResponse(
        qrCode=file_url,
        isTemporary=False,
        event=EventQrCode.model_validate(event),
    )


@router.post("/associate-qr-code", response_model=UploadActionResponse, response_model_exclude_none=True)
async def associate_qr_code(
    payload: AssociateQrCodeRequest,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    """Attach a QR code uploaded under a temporary id to the event once it exists."""
    event = await get_hosted_event(db, payload.real_event_id, current_user)
    event.qr_code = payload.qr_code_url
    await db.commit()
    await db.refresh(event)

    logger.info(f"🔗 QR code from {payload.temp_event_id} associated with event {event.id}")
    return UploadActionResponse(
        message="QR code associated successfully",
        event=EventQrCode.model_validate(event),
    )


@router.delete("/payment-proof/{owner_type}/{record_id}", response_model=UploadActionResponse, response_model_exclude_none=True)
async def delete_payment_proof(
    owner_type: str,
    record_id: int,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    try:
        model = PAYMENT_PROOF_MODELS[PaymentProofOwner(owner_type)]
    except ValueError:
        raise HTTPException(status_code=400, detail='Invalid type. Must be "waiting-list" or "registration"')

    record = await get_payment_proof_owner(db, model, record_id, current_user)
    if not record.payment_proof:
        raise HTTPException(status_code=404, detail="No payment proof found")

    payment_proof_url = record.payment_proof
    try:
        record.payment_proof = None
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"Payment proof deletion error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete payment proof")

    # Row no longer references the object, so a storage failure only leaves an orphan
    discard_stored_file(payment_proof_url)
    return UploadActionResponse(message="Payment proof deleted successfully")


@router.delete("/qr-code/{event_id}", response_model=UploadActionResponse, response_model_exclude_none=True)
async def delete_qr_code(
    event_id: str,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    if event_id.startswith(TEMPORARY_EVENT_PREFIX):
        # Never persisted, nothing to null out
        return UploadActionResponse(message="Temporary QR code will be cleaned up")

    event = await get_hosted_event(db, parse_event_id(event_id), current_user)
    if not event.qr_code:
        raise HTTPException(status_code=404, detail="No QR code found for this event")

    qr_code_url = event.qr_code
    try:
        event.qr_code = None
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"QR code deletion error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete QR code")

    discard_stored_file(qr_code_url)
    return UploadActionResponse(message="QR code deleted successfully")
