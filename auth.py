"""
Authentication and request guards

Credentials arrive as HTTP Basic auth (`Authorization: Basic base64(email:password)`)
and are checked against the bcrypt hash stored on the user document.

Every guard below is a FastAPI dependency that either passes or raises one
HTTPException with a fixed status. Routes list them in evaluation order with
`guards(...)`.
"""
import base64
import binascii
import logging
from typing import Any, Callable, List, Optional, Tuple

from fastapi import Depends, HTTPException, Request
from passlib.context import CryptContext

from database import Database, get_database
from schemas import normalize_email

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def configure_hashing(rounds: int):
    pwd_context.update(bcrypt__rounds=rounds)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    # bcrypt hashes carry their own cost factor, so any rounds setting verifies
    try:
        return pwd_context.verify(plain_password, password_hash)
    except ValueError:
        return False


def get_credentials(authorization: Optional[str]) -> Optional[Tuple[str, str]]:
    """Decode a Basic Authorization header into (email, password).

    Returns None when the header is missing, uses another scheme, is not
    valid base64, or does not hold exactly two colon-separated fields.
    """
    if not authorization:
        return None
    scheme, _, encoded = authorization.partition(" ")
    if scheme != "Basic" or not encoded.strip():
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    parts = decoded.split(":")
    if len(parts) != 2:
        return None
    return parts[0], parts[1]


def accepts_json(accept: Optional[str]) -> bool:
    if not accept:
        return False
    return any("application/json" in value or "*/*" in value for value in accept.split(","))


def serialize_user(doc: dict) -> dict:
    return {
        "id": str(doc["_id"]),
        "name": doc.get("name"),
        "email": doc.get("email"),
        "role": doc.get("role", "customer"),
    }


def authenticate(database: Database, authorization: Optional[str]) -> Optional[dict]:
    credentials = get_credentials(authorization)
    if credentials is None:
        return None
    email, password = credentials
    # stored addresses are normalized on registration
    email = normalize_email(email)
    user = database.collection("user").find_one({"email": email}) if email else None
    if not user:
        logger.debug("No user for %s", email)
        return None
    if not verify_password(password, user.get("password_hash", "")):
        logger.debug("Wrong password for %s", email)
        return None
    return serialize_user(user)


# ----------------------- Guards -----------------------

def current_user(request: Request, database: Database = Depends(get_database)) -> dict:
    user = authenticate(database, request.headers.get("authorization"))
    if user is None:
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Basic"},
        )
    return user


def require_admin(user: dict = Depends(current_user)) -> dict:
    if user["role"] != "admin":
        raise HTTPException(status_code=403, detail="Admin only")
    return user


def require_customer(user: dict = Depends(current_user)) -> dict:
    if user["role"] != "customer":
        raise HTTPException(status_code=403, detail="Customers only")
    return user


def require_json(request: Request):
    if not accepts_json(request.headers.get("accept")):
        raise HTTPException(status_code=406, detail="Client must accept application/json")


SELF_TARGET_MESSAGES = {
    "PUT": "Updating own data is not allowed",
    "DELETE": "Deleting own data is not allowed",
}


def reject_self_target(user_id: str, request: Request, user: dict = Depends(current_user)):
    if user_id == user["id"]:
        message = SELF_TARGET_MESSAGES.get(request.method, "Modifying own data is not allowed")
        raise HTTPException(status_code=400, detail=message)


async def json_body(request: Request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid request body")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Invalid request body")
    return body


def guards(*checks: Callable[..., Any]) -> List[Any]:
    return [Depends(check) for check in checks]
