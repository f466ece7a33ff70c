import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse

from src.api.core.constants import ANONYMOUS_ID_COOKIE, SKIP_AUTH_PATHS
from src.api.core.exceptions.base import BillToSheetException
from src.api.core.messages import MessageCode
from src.core.context import CallerIdentity
from src.modules.user.auth_handlers import handle_jwt_auth
from src.utils.path_helpers import path_matches

logger = structlog.get_logger(__name__)


async def auth_middleware(request: Request, call_next):
    """
    Resolve the caller identity for every request.

    A valid ``Authorization: Bearer <jwt>`` yields a registered identity; with no
    header the caller is anonymous and identified by the ``anonymous_id`` cookie,
    if any. Routes decide whether an anonymous caller is acceptable.
    """
    anonymous_id = request.cookies.get(ANONYMOUS_ID_COOKIE) or None

    if path_matches(request.url.path, SKIP_AUTH_PATHS):
        request.state.identity = CallerIdentity(anonymous_id=anonymous_id)
        return await call_next(request)

    authorization = request.headers.get("Authorization", "")

    try:
        if authorization:
            auth_parts = authorization.split(" ")
            if len(auth_parts) != 2 or auth_parts[0].lower() != "bearer":
                raise BillToSheetException(
                    MessageCode.INVALID_TOKEN,
                    status.HTTP_401_UNAUTHORIZED,
                    {"description": "Authorization header must be 'Bearer <token>'"},
                )
            request.state.identity = handle_jwt_auth(auth_parts[1], anonymous_id)
            structlog.contextvars.bind_contextvars(
                auth_user_id=request.state.identity.auth_user_id
            )
        else:
            request.state.identity = CallerIdentity(anonymous_id=anonymous_id)
    except BillToSheetException as e:
        # Raised exceptions here would skip the registered handlers
        logger.info(
            "Authentication rejected",
            message_code=e.message_code.value,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_response_dict(),
            headers=e.headers,
        )

    return await call_next(request)
