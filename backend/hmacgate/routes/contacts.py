"""Contact submission endpoint signed through its JSON body."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..canonical import signed_body
from ..dependencies import get_authenticated_username
from ..models import ContactAcknowledgement, ContactCreate

router = APIRouter(prefix="/api/contacts", tags=["contacts"])


@router.post(
    "",
    response_model=ContactAcknowledgement,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Submit a contact record",
)
@signed_body(ContactCreate, method="POST", path="/api/contacts")
async def submit_contact(
    payload: ContactCreate,
    username: str = Depends(get_authenticated_username),
) -> ContactAcknowledgement:
    """Validate a contact; persistence belongs to the entity layer."""

    return ContactAcknowledgement(submitted_by=username, contact=payload)
