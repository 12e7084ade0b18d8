"""
Auth API Module
"""
from fastapi import APIRouter, Depends

from zemon.auth import Identity, require_identity
from zemon.controllers.common import success

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/verify")
def verify_token(identity: Identity = Depends(require_identity)):
    """
    Echo the identity carried by a valid bearer token.
    """
    return success({"id": identity.id, "name": identity.name, "role": identity.role})
