"""Auth routes. Tokens are issued by the sign-in service; this only checks them."""

from fastapi import APIRouter

from ..auth import CurrentIdentity

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/verify")
async def verify(identity: CurrentIdentity):
    """Report whether the bearer token is valid, echoing its claims."""
    user = {k: v for k, v in identity.claims.items() if k not in ("exp", "iat")}
    return {
        "valid": True,
        "user": {**user, "uid": identity.subject_id, "userType": identity.role},
    }
