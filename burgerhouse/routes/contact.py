import logging

from fastapi import APIRouter, HTTPException

from .. import mailer
from ..models import ContactReq

log = logging.getLogger("burgerhouse.routes.contact")

router = APIRouter(prefix="/api/contact", tags=["Contact"])


@router.post("")
def send_contact(req: ContactReq):
    fields = {k: (v or "").strip() for k, v in req.model_dump().items()}
    if not all(fields.values()):
        raise HTTPException(status_code=400, detail="All fields are required")
    if not mailer.smtp_configured():
        raise HTTPException(status_code=500, detail="Email service not configured")

    if not mailer.send_contact_message(**fields):
        raise HTTPException(status_code=500, detail="Failed to send message")
    log.info("Contact message from %s (%s)", fields["email"], fields["subject"])
    return {"success": True, "message": "Email sent successfully"}
