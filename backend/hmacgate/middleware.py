"""HTTP middleware that puts the authentication gate in front of every route."""

from __future__ import annotations

from pydantic import ValidationError
import structlog
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from .canonical import SIGNED_BODIES, ParameterEntry, SignedBodyRegistry, SignedRequest
from .config import SECURITY_CONFIG
from .gate import AuthenticationDenied, AuthenticationGate, DenialReason

logger = structlog.get_logger(__name__)

_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def unauthorized_response() -> JSONResponse:
    return JSONResponse(status_code=401, content={"detail": "Unauthorized."})


def _single_header(request: Request, name: str) -> str | None:
    values = request.headers.getlist(name)
    if len(values) != 1:
        return None
    return values[0]


def _request_path(request: Request) -> str:
    """Return the path as sent on the wire, still percent-encoded."""

    raw_path = request.scope.get("raw_path")
    if not raw_path:
        return request.url.path
    return raw_path.decode("latin-1").split("?", 1)[0]


async def _form_entries(request: Request) -> list[ParameterEntry]:
    content_type = request.headers.get("content-type", "")
    if not content_type.startswith(_FORM_CONTENT_TYPES):
        return []
    # The raw body must be cached first so the route can still read it.
    await request.body()
    form = await request.form()
    return [
        ParameterEntry(key, value)
        for key, value in form.multi_items()
        if not isinstance(value, UploadFile)
    ]


async def _body_entries(request: Request, registry: SignedBodyRegistry) -> list[ParameterEntry]:
    model = registry.resolve(request.method, request.scope["path"])
    if model is None:
        return []
    body = await request.body()
    if not body:
        return []
    try:
        payload = model.model_validate_json(body)
    except ValidationError:
        logger.debug("signed_body_invalid", path=request.url.path, model=model.__name__)
        return []
    return payload.signing_entries()


def signed_request_headers(request: Request) -> SignedRequest:
    """Build a :class:`SignedRequest` carrying only the path and signing headers."""

    return SignedRequest(
        method=request.method,
        path=_request_path(request),
        timestamp=_single_header(request, SECURITY_CONFIG.timestamp_header),
        authentication=_single_header(request, SECURITY_CONFIG.authentication_header),
    )


async def collect_signed_parameters(
    request: Request, signed: SignedRequest, registry: SignedBodyRegistry = SIGNED_BODIES
) -> None:
    """Fill ``signed`` with query, form and declared body entries.

    Raises whatever Starlette raises for an unparseable form body.
    """

    signed.query = [ParameterEntry(key, value) for key, value in request.query_params.multi_items()]
    signed.form = await _form_entries(request)
    if not signed.query and not signed.form:
        signed.body = await _body_entries(request, registry)


class SignatureMiddleware(BaseHTTPMiddleware):
    """Runs the gate for every non-exempt request.

    The gate is read from ``request.app.state.gate``, which the application
    lifespan installs. Denied requests get a bare 401 regardless of the cause.
    Header checks run before the body is read, and a body that cannot be
    parsed is a denial like any other.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        exempt_paths: frozenset[str] = SECURITY_CONFIG.exempt_paths,
        signed_bodies: SignedBodyRegistry = SIGNED_BODIES,
    ) -> None:
        super().__init__(app)
        self.exempt_paths = exempt_paths
        self.signed_bodies = signed_bodies

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method == "OPTIONS" or request.url.path in self.exempt_paths:
            return await call_next(request)

        gate: AuthenticationGate = request.app.state.gate
        signed = signed_request_headers(request)
        try:
            username, signature = gate.check_headers(signed)
            try:
                await collect_signed_parameters(request, signed, self.signed_bodies)
            except (HTTPException, MultiPartException, KeyError, ValueError) as exc:
                logger.debug("signed_parameters_unreadable", path=request.url.path, error=str(exc))
                raise AuthenticationDenied(DenialReason.MALFORMED_PARAMETERS) from exc
            username = await gate.verify(signed, username, signature)
        except AuthenticationDenied as exc:
            logger.info(
                "authentication_denied",
                reason=exc.reason.value,
                method=request.method,
                path=request.url.path,
            )
            return unauthorized_response()

        request.state.username = username
        logger.debug("authentication_admitted", username=username, path=request.url.path)
        return await call_next(request)
