import os

from fastapi import Header, HTTPException
from jose import jwt
from jose.exceptions import JOSEError


def verify_token(authorization: str = Header(None)):
    """Admin guard: requires ``Authorization: Bearer <HS256 JWT>``."""
    try:
        scheme, token = (authorization or "").split()
        if scheme.lower() != "bearer":
            raise ValueError("not a bearer token")
        claims = jwt.decode(token, os.getenv("JWT_SECRET"), algorithms=["HS256"])
    except (ValueError, JOSEError):
        raise HTTPException(status_code=401, detail="Invalid or missing token")
    return claims
