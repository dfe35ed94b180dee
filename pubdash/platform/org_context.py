"""
Signed-in organization context for authenticated routes.

The authentication layer in front of this service stores an OrgContext on
request.state.org_context. Public (token) routes never read it.
"""

import logging
from dataclasses import dataclass

from fastapi import Request, HTTPException, status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrgContext:
    """Identity of the signed-in user making a config change."""
    org_id: int
    user_id: str

    def __post_init__(self):
        if not self.user_id:
            raise ValueError("user_id cannot be empty")


def get_org_context(request: Request) -> OrgContext:
    """
    Extract org context from request state.

    Raises 403 if org context is missing.
    """
    if not hasattr(request.state, "org_context"):
        logger.error("Route handler accessed without org context", extra={
            "path": request.url.path
        })
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Org context not available"
        )

    return request.state.org_context
