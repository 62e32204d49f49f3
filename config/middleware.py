from __future__ import annotations

import logging

from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger("academy.request")


class RequestLogMiddleware(MiddlewareMixin):
    """Log every incoming request as `METHOD path`."""

    def process_request(self, request):  # noqa: D401
        logger.info("%s %s", request.method, request.get_full_path())


class ContentSecurityPolicyMiddleware(MiddlewareMixin):
    """Add a basic Content-Security-Policy header.

    The API serves JSON almost exclusively; the strict policy only has to
    relax for the Swagger UI page, which injects one inline <style> block.
    """

    def process_response(self, request, response):  # noqa: D401
        script_src = "'self'"
        style_src = "'self'"

        # Swagger UI loads its bundle from jsDelivr and injects one inline <style> block.
        if request.path == "/docs/":
            script_src = "'self' https://cdn.jsdelivr.net"
            style_src = "'self' https://cdn.jsdelivr.net 'unsafe-inline'"

        csp = (
            "default-src 'self'; "
            "img-src 'self' https://api.dicebear.com https://cdn.jsdelivr.net data:; "
            f"script-src {script_src}; "
            f"style-src {style_src}; "
            "connect-src 'self'; "
            "frame-ancestors 'none'"
        )
        response["Content-Security-Policy"] = csp
        return response


class ApiErrorMiddleware(MiddlewareMixin):
    """Render uncaught exceptions under /api/ with the uniform 500 body.

    DRF views go through `api.errors.api_exception_handler`; this catches
    whatever escapes plain Django views mounted below the API prefix.
    """

    def process_exception(self, request, exception):  # noqa: D401
        if not request.path.startswith("/api/"):
            return None
        logger.exception("Error for %s %s", request.method, request.path)
        return JsonResponse(
            {
                "error": True,
                "message": str(exception) or "Internal server error",
                "code": "INTERNAL_ERROR",
                "path": request.path,
            },
            status=500,
        )
