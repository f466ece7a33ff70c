"""Authentication handlers for identity-provider JWTs."""

from fastapi import status
from jose import JWTError, jwt

from src.api.core.constants import JWT_ALGORITHM
from src.api.core.exceptions.base import BillToSheetException
from src.api.core.messages import MessageCode
from src.core.context import CallerIdentity
from src.modules.user.jwt_claims import extract_user_data_from_jwt
from src.utils.settings.auth import AuthSettings
from src.utils.logger import get_logger

logger = get_logger(__name__)


def handle_jwt_auth(token: str, anonymous_id: str | None = None) -> CallerIdentity:
    auth_settings = AuthSettings()
    try:
        payload = jwt.decode(
            token,
            auth_settings.AUTH_JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            audience=auth_settings.AUTH_JWT_AUDIENCE,
        )
    except JWTError as e:
        logger.warning(f"JWT decoding failed: {e}")
        raise BillToSheetException(
            MessageCode.INVALID_TOKEN,
            status.HTTP_401_UNAUTHORIZED,
            {"description": "Invalid or expired authentication token"},
        )

    user_data = extract_user_data_from_jwt(payload)
    if not user_data["auth_user_id"]:
        raise BillToSheetException(
            MessageCode.INVALID_TOKEN,
            status.HTTP_401_UNAUTHORIZED,
            {"description": "Token has no subject"},
        )

    return CallerIdentity(
        auth_user_id=user_data["auth_user_id"],
        email=user_data["email"],
        anonymous_id=anonymous_id,
    )
