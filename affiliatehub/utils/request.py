"""
Request helpers.
"""

from typing import Optional


def get_client_ip(request) -> Optional[str]:
    """
    Extract client IP from request.

    Handles X-Forwarded-For header for reverse proxy setups.
    """
    # Check for X-Forwarded-For header (load balancer, nginx, etc.)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # First IP in the list is the client
        return forwarded_for.split(",")[0].strip()

    # Fall back to direct client IP
    if hasattr(request, "client") and request.client:
        return request.client.host

    return None
