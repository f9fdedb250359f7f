"""Resume endpoints for Web API v1."""

from __future__ import annotations

from typing import List, Optional, Union

from fastapi import APIRouter, Depends, File, Header, UploadFile, status
from pydantic import BaseModel, ConfigDict

from ..deps import get_principal, get_public_base_url, get_service
from ..upload import to_image_upload
from ....auth import Principal
from ....errors import ResumeValidationError
from ....service import ResumeLifecycleService, resume_payload

router = APIRouter(prefix="/resumes", tags=["resumes"])

Progress = Optional[Union[int, float, str]]


class _Section(BaseModel):
    model_config = ConfigDict(extra="allow")


class TemplateSelection(_Section):
    theme: Optional[str] = None
    colorPalette: Optional[List[str]] = None


class ProfileInfo(_Section):
    profileImageUrl: Optional[str] = None
    fullName: Optional[str] = None
    designation: Optional[str] = None
    summary: Optional[str] = None


class ContactInfo(_Section):
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None
    website: Optional[str] = None


class WorkExperience(_Section):
    company: Optional[str] = None
    role: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    description: Optional[str] = None


class Education(_Section):
    degree: Optional[str] = None
    institution: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None


class Skill(_Section):
    name: Optional[str] = None
    progress: Progress = None


class Project(_Section):
    title: Optional[str] = None
    description: Optional[str] = None
    github: Optional[str] = None
    liveDemo: Optional[str] = None


class Certification(_Section):
    title: Optional[str] = None
    issuer: Optional[str] = None
    year: Optional[Union[str, int]] = None


class Language(_Section):
    name: Optional[str] = None
    progress: Progress = None


class ResumeFields(_Section):
    title: Optional[str] = None
    template: Optional[TemplateSelection] = None
    profileInfo: Optional[ProfileInfo] = None
    contactInfo: Optional[ContactInfo] = None
    workExperience: Optional[List[WorkExperience]] = None
    education: Optional[List[Education]] = None
    skills: Optional[List[Skill]] = None
    projects: Optional[List[Project]] = None
    certifications: Optional[List[Certification]] = None
    languages: Optional[List[Language]] = None
    interests: Optional[List[str]] = None


class CreateResumeRequest(ResumeFields):
    """Title plus optional section pre-fill (e.g. from a template)."""


class UpdateResumeRequest(ResumeFields):
    expectedVersion: Optional[int] = None


class ResumeResponse(ResumeFields):
    id: str
    ownerId: str
    title: str
    thumbnailUrl: Optional[str] = None
    createdAt: str
    updatedAt: str
    version: int
    completion: int


class ListResumesResponse(BaseModel):
    items: List[ResumeResponse]


class DeleteResumeResponse(BaseModel):
    message: str


class UploadImagesResponse(BaseModel):
    message: str
    thumbnailUrl: Optional[str] = None
    profileImageUrl: Optional[str] = None


def _parse_if_match(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    raw = value.strip()
    if raw.startswith("W/"):
        raw = raw[2:]
    raw = raw.strip('"')
    try:
        return int(raw)
    except ValueError as exc:
        raise ResumeValidationError("If-Match must carry an integer version", {"if_match": value}) from exc


@router.post("", response_model=ResumeResponse, status_code=status.HTTP_201_CREATED)
async def create_resume(
    request: CreateResumeRequest,
    service: ResumeLifecycleService = Depends(get_service),
    principal: Principal = Depends(get_principal),
) -> ResumeResponse:
    overrides = request.model_dump(exclude_unset=True, exclude={"title"})
    record = await service.create_resume(
        owner_id=principal.id,
        title=request.title or "",
        overrides=overrides,
    )
    return ResumeResponse(**resume_payload(record))


@router.get("", response_model=ListResumesResponse)
async def list_resumes(
    service: ResumeLifecycleService = Depends(get_service),
    principal: Principal = Depends(get_principal),
) -> ListResumesResponse:
    records = await service.list_resumes(owner_id=principal.id)
    return ListResumesResponse(items=[ResumeResponse(**resume_payload(record)) for record in records])


@router.get("/{resume_id}", response_model=ResumeResponse)
async def get_resume(
    resume_id: str,
    service: ResumeLifecycleService = Depends(get_service),
    principal: Principal = Depends(get_principal),
) -> ResumeResponse:
    record = await service.get_resume(resume_id=resume_id, owner_id=principal.id)
    return ResumeResponse(**resume_payload(record))


@router.put("/{resume_id}", response_model=ResumeResponse)
async def update_resume(
    resume_id: str,
    request: UpdateResumeRequest,
    if_match: Optional[str] = Header(default=None),
    service: ResumeLifecycleService = Depends(get_service),
    principal: Principal = Depends(get_principal),
) -> ResumeResponse:
    patch = request.model_dump(exclude_unset=True, exclude={"expectedVersion"})
    expected_version = request.expectedVersion
    if expected_version is None:
        expected_version = _parse_if_match(if_match)
    record = await service.update_resume(
        resume_id=resume_id,
        owner_id=principal.id,
        patch=patch,
        expected_version=expected_version,
    )
    return ResumeResponse(**resume_payload(record))


@router.delete("/{resume_id}", response_model=DeleteResumeResponse)
async def delete_resume(
    resume_id: str,
    service: ResumeLifecycleService = Depends(get_service),
    principal: Principal = Depends(get_principal),
) -> DeleteResumeResponse:
    await service.delete_resume(resume_id=resume_id, owner_id=principal.id)
    return DeleteResumeResponse(message="Resume deleted successfully")


@router.api_route("/{resume_id}/upload-image", methods=["PUT", "POST"], response_model=UploadImagesResponse)
async def upload_resume_images(
    resume_id: str,
    thumbnail: Optional[UploadFile] = File(default=None),
    profileImage: Optional[UploadFile] = File(default=None),
    service: ResumeLifecycleService = Depends(get_service),
    principal: Principal = Depends(get_principal),
    base_url: str = Depends(get_public_base_url),
) -> UploadImagesResponse:
    urls = await service.upload_resume_images(
        resume_id=resume_id,
        owner_id=principal.id,
        base_url=base_url,
        thumbnail=await to_image_upload(thumbnail, service.assets),
        profile_image=await to_image_upload(profileImage, service.assets),
    )
    return UploadImagesResponse(message="Resume images uploaded successfully", **urls)
