from pathlib import Path
from fastapi import UploadFile, HTTPException
from app.constants.constants import ALLOWED_IMAGE_EXTENSIONS, MAX_UPLOAD_SIZE
from app.services.S3Service import upload_file_to_s3


async def validate_image(file: UploadFile) -> None:
    """
    Reject anything that is not an image of an allowed type under 5MB.
    Leaves the file rewound so it can be streamed to S3.
    """
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    content_type = file.content_type or ""
    file_ext = Path(file.filename).suffix.lower()
    if not content_type.startswith("image/") or file_ext not in ALLOWED_IMAGE_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail="Only image files (jpg, jpeg, png, gif, webp) are allowed"
        )

    content = await file.read()
    if len(content) > MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=400,
            detail="File size too large. Maximum size is 5MB"
        )

    await file.seek(0)


async def validate_and_upload_image(file: UploadFile, folder: str) -> str:
    """
    Validate and upload an image to S3
    Returns the S3 URL
    """
    await validate_image(file)

    try:
        return upload_file_to_s3(file, folder=folder)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to upload file: {str(e)}"
        )
