"""Certificate API endpoints.

Certificates are looked up by their public id, so anyone holding the id
(an employer checking a printed certificate, for instance) can verify it.
"""

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from scholarsync.auth.dependencies import CurrentUser

from .dependencies import CertificateServiceDep, handle_certificate_error
from .schemas import CertificateListResponse, CertificateResponse
from .service import CertificateNotFoundError
from .templates import render_certificate


router = APIRouter(prefix="/v1/certificates", tags=["certificates"])


@router.get(
    "",
    response_model=CertificateListResponse,
    summary="List the caller's certificates",
)
async def list_my_certificates(
    certificate_service: CertificateServiceDep,
    user: CurrentUser,
) -> CertificateListResponse:
    certificates = await certificate_service.list_student_certificates(user.id)
    return CertificateListResponse(
        items=[CertificateResponse.from_entity(c) for c in certificates]
    )


@router.get(
    "/{certificate_id}",
    response_model=CertificateResponse,
    summary="Verify a certificate",
)
async def get_certificate(
    certificate_id: str,
    certificate_service: CertificateServiceDep,
) -> CertificateResponse:
    certificate = await certificate_service.get_certificate(certificate_id)
    if not certificate:
        raise handle_certificate_error(CertificateNotFoundError())
    return CertificateResponse.from_entity(certificate)


@router.get(
    "/{certificate_id}/html",
    response_class=HTMLResponse,
    summary="Printable certificate",
)
async def render_certificate_html(
    certificate_id: str,
    certificate_service: CertificateServiceDep,
) -> HTMLResponse:
    certificate = await certificate_service.get_certificate(certificate_id)
    if not certificate:
        raise handle_certificate_error(CertificateNotFoundError())
    return HTMLResponse(render_certificate(certificate))
