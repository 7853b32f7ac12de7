from typing import Optional

from pydantic import BaseModel

from clinic_api.schemas.common import CamelModel


class UploadAuthOut(BaseModel):
    token: str
    expire: int
    signature: str


class FileDeleteIn(CamelModel):
    file_id: Optional[str] = None


class FileDeleteOut(BaseModel):
    ok: bool = True
    file_id: str
