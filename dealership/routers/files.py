# dealership/routers/files.py
"""
Upload, delete and serve stored files.
Retrieval is open so <img> tags can load images without auth headers.
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse

from dealership.services import file_service
from dealership.services.auth_service import DELETE, WRITE, Principal, require_permission

router = APIRouter()


@router.post("/upload", summary="Upload an image or document")
async def upload_file(
    file: UploadFile = File(...),
    entity_type: str = Form(...),
    entity_id: str = Form(...),
    principal: Principal = Depends(require_permission(WRITE)),
):
    stored = await file_service.save_upload(file, entity_type, entity_id)
    return {"data": stored}


@router.delete("/upload", summary="Delete a stored file by URL")
def delete_file(
    url: str,
    principal: Principal = Depends(require_permission(DELETE)),
):
    file_service.delete_file(url)
    return {"message": "File deleted successfully"}


@router.get("/files/{file_path:path}", summary="Serve a stored file")
def get_file(file_path: str):
    full_path, media_type = file_service.stored_file(file_path)
    return FileResponse(full_path, media_type=media_type,
                        headers={"Cache-Control": "private, max-age=31536000"})
