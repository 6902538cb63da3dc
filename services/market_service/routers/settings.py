"""Company branding endpoints used by the receipt templates."""

from fastapi import APIRouter, Depends, File, Response, UploadFile
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from services.market_service.schemas import (
    CompanyNameResponse,
    CompanyNameUpdate,
    CompanyNameUpdated,
    LogoUploadResponse,
    MessageResponse,
)
from services.market_service.services.branding import (
    LOGO_FILENAME,
    get_branding_store,
)

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/company-name", response_model=CompanyNameResponse)
async def get_company_name(current_user: AuthUser = Depends(get_current_user)):
    return {"company_name": await get_branding_store().get_company_name()}


@router.post("/company-name", response_model=CompanyNameUpdated)
async def update_company_name(
    body: CompanyNameUpdate,
    current_user: AuthUser = Depends(get_current_user),
):
    company_name = await get_branding_store().set_company_name(body.company_name)
    return {"message": "Company name updated", "company_name": company_name}


@router.post("/logo/upload", response_model=LogoUploadResponse)
async def upload_logo(
    logo: UploadFile = File(...),
    current_user: AuthUser = Depends(get_current_user),
):
    """Upload a logo image (max 5 MB). Stored as PNG."""
    content = await logo.read()
    size = await get_branding_store().save_logo(content)
    return {
        "message": "Logo uploaded",
        "filename": LOGO_FILENAME,
        "original_name": logo.filename,
        "size": size,
    }


@router.get("/logo", response_class=Response)
async def get_logo(current_user: AuthUser = Depends(get_current_user)):
    content = await get_branding_store().read_logo()
    return Response(
        content=content,
        media_type="image/png",
        headers={"Cache-Control": "no-cache"},
    )


@router.post("/logo/delete", response_model=MessageResponse)
async def delete_logo(current_user: AuthUser = Depends(get_current_user)):
    deleted = await get_branding_store().delete_logo()
    return {"message": "Logo deleted" if deleted else "No logo to delete"}
