"""Access logging for privileged settings endpoints.

Complements the persistent settings audit trail: this records who called
which endpoint, including calls rejected before reaching a service.
"""

import logging

from fastapi import Request

from app.auth.dependencies import CurrentUser

logger = logging.getLogger("audit")


def audit_logged(action: str):
    """Dependency factory that logs privileged actions.

    Usage::

        @router.put("/security", dependencies=[Depends(audit_logged("update_security"))])
    """

    async def _log(request: Request, current_user: CurrentUser) -> None:
        client_ip = request.client.host if request.client else "unknown"
        request_id = getattr(request.state, "request_id", "n/a")
        logger.info(
            "AUDIT action=%s user=%s role=%s tenant=%s ip=%s request_id=%s path=%s",
            action,
            current_user.id,
            current_user.role,
            current_user.tenant_id or "-",
            client_ip,
            request_id,
            request.url.path,
        )

    return _log
