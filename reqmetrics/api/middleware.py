from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from ..request import RequestMeter

UNMATCHED_ROUTE = "unmatched"


class RequestMetricsMiddleware(BaseHTTPMiddleware):
    """
    measures every http request with a RequestMeter

    the gauge and counters are labelled by method only; the duration
    histogram additionally gets the matched route template and the response
    status code
    """

    def __init__(self, app: ASGIApp, meter: RequestMeter):
        super().__init__(app)
        self.meter = meter

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        async def handle(labels: dict[str, str]) -> Response:
            response = await call_next(request)
            route = request.scope.get("route")
            labels["route"] = getattr(route, "path", UNMATCHED_ROUTE)
            labels["status"] = str(response.status_code)
            return response

        return await self.meter.measure_async({"method": request.method}, handle)
