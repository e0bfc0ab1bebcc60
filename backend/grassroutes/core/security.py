# backend/grassroutes/core/security.py
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from grassroutes.core.config import settings

CONTENT_SECURITY_POLICY = "; ".join([
    "default-src 'self'",
    "style-src 'self' 'unsafe-inline' https://fonts.googleapis.com",
    "font-src 'self' https://fonts.gstatic.com",
    "script-src 'self' 'unsafe-inline' https://static.cloudflareinsights.com",
    "img-src 'self' data: https:",
    "connect-src 'self' https://api.stripe.com https://*.firebaseio.com https://*.googleapis.com "
    "https://identitytoolkit.googleapis.com https://securetoken.googleapis.com https://static.cloudflareinsights.com",
    "frame-src 'self' https://js.stripe.com",
    "object-src 'none'",
])


def security_headers(production: bool = False) -> dict:
    headers = {
        "X-Frame-Options": "DENY",
        "X-Content-Type-Options": "nosniff",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Strict-Transport-Security": "max-age=31536000; includeSubDomains; preload",
        "Content-Security-Policy": CONTENT_SECURITY_POLICY,
    }
    if production:
        headers["Content-Security-Policy"] += "; upgrade-insecure-requests"
    return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds the security headers to every response."""

    def __init__(self, app, production: bool = settings.is_production):
        super().__init__(app)
        self.headers = security_headers(production)

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        return response
