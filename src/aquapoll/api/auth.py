"""Admin authorization for operator endpoints.

Operator endpoints expect ``Authorization: Bearer <token>`` matching the
configured admin token. When no token is configured the check is disabled,
which suits a controller reachable only on a trusted network.
"""

from __future__ import annotations

import secrets

from fastapi import Header, Request

from ..errors import ForbiddenError, UnauthorizedError


async def require_admin(
    request: Request,
    authorization: str | None = Header(default=None),
) -> None:
    """FastAPI dependency rejecting requests without the admin token.

    Raises:
        UnauthorizedError: If the header is missing or not a bearer token
        ForbiddenError: If the token does not match
    """
    expected = request.app.state.service.admin_token
    if not expected:
        return

    if not authorization:
        raise UnauthorizedError()

    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise UnauthorizedError("Invalid or expired token")

    if not secrets.compare_digest(token.encode(), expected.encode()):
        raise ForbiddenError()
