"""
CORS configuration for the browser client.

Every OPTIONS request is answered with an empty 200, including browser
preflights that Starlette's CORSMiddleware would otherwise answer itself
with an ``OK`` body or reject for unlisted request headers.
"""

from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": ", ".join(CORS_ALLOW_HEADERS),
}


class PreflightCORSMiddleware(CORSMiddleware):
    """CORSMiddleware whose preflight reply is always an empty 200."""

    def preflight_response(self, request_headers: Headers) -> Response:
        headers = dict(self.preflight_headers)
        if "Access-Control-Allow-Origin" not in headers:
            origin = request_headers.get("origin", "")
            if self.is_allowed_origin(origin=origin):
                headers["Access-Control-Allow-Origin"] = origin
        headers["Access-Control-Allow-Headers"] = CORS_HEADERS["Access-Control-Allow-Headers"]
        return Response(status_code=200, headers=headers)
