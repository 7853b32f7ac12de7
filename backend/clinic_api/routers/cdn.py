from fastapi import APIRouter, Depends

from clinic_api.deps import get_current_user
from clinic_api.models.user import User
from clinic_api.schemas.cdn import FileDeleteIn, FileDeleteOut, UploadAuthOut
from clinic_api.services import cdn

router = APIRouter(tags=["cdn"])


@router.get("/imagekit-auth", response_model=UploadAuthOut)
def imagekit_auth(_user: User = Depends(get_current_user)):
    return cdn.upload_auth_params()


@router.post("/imagekit-delete", response_model=FileDeleteOut)
def imagekit_delete(payload: FileDeleteIn, _user: User = Depends(get_current_user)):
    cdn.delete_file(payload.file_id)
    return FileDeleteOut(file_id=payload.file_id)
