from datetime import date
from pydantic import BaseModel, Field
from typing import Literal, Optional

from docscan.orchestrator.contracts import DocumentInfo
from docscan.orchestrator.errors import ScanError
from docscan.orchestrator.geometry import Rect

ScanStateName = Literal["idle", "presenting", "capturing", "cropping", "recognizing", "delivered", "failed"]

class RectOut(BaseModel):
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_rect(cls, r: Rect) -> "RectOut":
        return cls(x=r.x, y=r.y, width=r.width, height=r.height)

class ErrorOut(BaseModel):
    domain: str
    code: int | str
    message: str

    @classmethod
    def from_error(cls, e: ScanError) -> "ErrorOut":
        return cls(domain=e.domain, code=e.code, message=e.message)

class DocumentOut(BaseModel):
    document_type: str
    country_code: str
    surname: str
    given_names: str
    document_number: str
    nationality: str
    birth_date: date
    sex: Literal["male", "female", "unspecified"]
    expiry_date: date
    personal_number: str = ""
    mrz_lines: list[str] = Field(default_factory=list)
    checks: dict[str, bool] = Field(default_factory=dict)
    valid: bool = False

    @classmethod
    def from_info(cls, info: DocumentInfo) -> "DocumentOut":
        return cls(
            document_type=info.document_type,
            country_code=info.country_code,
            surname=info.surname,
            given_names=info.given_names,
            document_number=info.document_number,
            nationality=info.nationality,
            birth_date=info.birth_date,
            sex=info.sex,
            expiry_date=info.expiry_date,
            personal_number=info.personal_number,
            mrz_lines=list(info.mrz_lines),
            checks=dict(info.checks),
            valid=info.is_valid,
        )

class ScanResponse(BaseModel):
    ok: bool
    state: ScanStateName
    duration_ms: int
    began_scan: bool = False               # BeginScan was delivered (image was cropped)
    crop: Optional[RectOut] = None
    document: Optional[DocumentOut] = None
    error: Optional[ErrorOut] = None

class ScanFrameRequest(BaseModel):
    image: str                             # base64 JPEG/PNG
    edited_image: Optional[str] = None     # base64; preferred over image when set

class CropRectRequest(BaseModel):
    view_width: float
    view_height: float
    image_width: float
    guide_height: float

class PresentResponse(BaseModel):
    ok: bool
    guide: Optional[RectOut] = None
    error: Optional[ErrorOut] = None

class StatusResponse(BaseModel):
    busy: bool
    state: ScanStateName
    last_error: Optional[ErrorOut] = None
    last_document: Optional[DocumentOut] = None
    logs: list[str]
