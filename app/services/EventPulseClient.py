"""Async client for the EventPulse upload and auth endpoints."""

import base64
import logging
import mimetypes
import os
from typing import Any, Dict, List, Optional

import httpx

from app.constants.constants import MAX_UPLOAD_SIZE, ErrorKind, PaymentProofOwner
from app.core.config import settings

logger = logging.getLogger(__name__)


class UploadError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthRequestError(Exception):
    """A failed login/register; ``kind`` selects how the form presents it."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.GENERIC, details: str = ""):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.details = details


class LocalFile:
    """An image picked for upload, held in memory."""

    def __init__(self, filename: str, content: bytes, content_type: Optional[str] = None):
        self.filename = filename
        self.content = content
        self.content_type = content_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"

    @classmethod
    def from_path(cls, path: str) -> "LocalFile":
        with open(path, "rb") as handle:
            return cls(os.path.basename(path), handle.read())

    @property
    def size(self) -> int:
        return len(self.content)


class FileValidation:
    def __init__(self, errors: List[str]):
        self.errors = errors

    @property
    def is_valid(self) -> bool:
        return not self.errors


def validate_file(file: LocalFile) -> FileValidation:
    """Pre-flight checks before sending an image to the server."""
    errors = []
    if not (file.content_type or "").startswith("image/"):
        errors.append("Only image files are allowed")
    if file.size > MAX_UPLOAD_SIZE:
        errors.append("File size must be less than 5MB")
    return FileValidation(errors)


async def get_file_preview(file: LocalFile) -> str:
    encoded = base64.b64encode(file.content).decode("ascii")
    return f"data:{file.content_type};base64,{encoded}"


def _error_body(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class EventPulseClient:
    API_PREFIX = "/api"

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.token = token
        self._transport = transport
        self._timeout = timeout

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            transport=self._transport,
            timeout=self._timeout,
        ) as client:
            response = await client.request(method, f"{self.API_PREFIX}{path}", headers=self._headers(), **kwargs)
        logger.info(f"EventPulse API {method} {path}: {response.status_code}")
        return response

    async def _upload_call(self, default_error: str, method: str, path: str, **kwargs) -> Dict[str, Any]:
        response = await self._request(method, path, **kwargs)
        if response.is_error:
            message = _error_body(response).get("error") or default_error
            logger.error(f"❌ {default_error}: {response.status_code} - {message}")
            raise UploadError(message, response.status_code)
        return response.json()

    # ------------------------------
    # Uploads
    # ------------------------------
    async def upload_payment_proof(
        self,
        file: LocalFile,
        waiting_list_id: Optional[int] = None,
        registration_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        data = {}
        if waiting_list_id:
            data["waitingListId"] = str(waiting_list_id)
        if registration_id:
            data["registrationId"] = str(registration_id)
        return await self._upload_call(
            "Upload failed",
            "POST",
            "/upload/payment-proof",
            files={"paymentProof": (file.filename, file.content, file.content_type)},
            data=data,
        )

    async def upload_qr_code(self, file: LocalFile, event_id) -> Dict[str, Any]:
        return await self._upload_call(
            "QR code upload failed",
            "POST",
            "/upload/qr-code",
            files={"qrCode": (file.filename, file.content, file.content_type)},
            data={"eventId": str(event_id)},
        )

    async def associate_qr_code(self, temp_event_id: str, real_event_id: int, qr_code_url: str) -> Dict[str, Any]:
        return await self._upload_call(
            "QR code association failed",
            "POST",
            "/upload/associate-qr-code",
            json={"tempEventId": temp_event_id, "realEventId": real_event_id, "qrCodeUrl": qr_code_url},
        )

    async def delete_payment_proof(self, owner_type, record_id: int) -> Dict[str, Any]:
        owner = owner_type.value if isinstance(owner_type, PaymentProofOwner) else owner_type
        return await self._upload_call("Delete failed", "DELETE", f"/upload/payment-proof/{owner}/{record_id}")

    async def delete_qr_code(self, event_id) -> Dict[str, Any]:
        return await self._upload_call("QR code delete failed", "DELETE", f"/upload/qr-code/{event_id}")

    # ------------------------------
    # Auth
    # ------------------------------
    async def _auth_call(self, path: str, payload: Dict[str, Any], default_error: str) -> str:
        try:
            response = await self._request("POST", path, json=payload)
        except httpx.RequestError as e:
            logger.error(f"Auth request failed: {str(e)}")
            raise AuthRequestError("Unable to reach the server. Please try again.") from e

        body = _error_body(response)
        if response.is_error:
            raise AuthRequestError(
                body.get("error") or default_error,
                ErrorKind.from_code(body.get("code")),
                body.get("details") or "",
            )

        self.token = body.get("token")
        return self.token

    async def login(self, email: str, password: str) -> str:
        return await self._auth_call("/auth/login", {"email": email, "password": password}, "Login failed")

    async def register(self, name: str, email: str, password: str, role: Optional[str] = None) -> str:
        payload = {"name": name, "email": email, "password": password}
        if role:
            payload["role"] = role
        return await self._auth_call("/auth/register", payload, "Registration failed")
