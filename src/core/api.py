"""
HTTP API plumbing shared by the Lambda handlers.

Each handler module declares a route table keyed by API Gateway routeKey and
hands the event to dispatch(), which:
- opens one database transaction for the request
- resolves the caller from the authorizer context on demand
- maps TripsError subclasses to their HTTP status and a JSON error body
- writes audit entries and sends notifications only after the commit
"""

import base64
import json
import logging
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

import pydantic
from sqlalchemy.orm import Session

from core.auth.caller import Caller, resolve_caller
from core.clients import get_database, get_dynamo_client
from core.config import get_config
from core.errors import ErrorCode, InternalError, NotFoundError, TripsError, ValidationError
from core.models.audit import AuditEntry
from core.models.base import ApiModel
from core.services.audit import record_audit
from core.services.notifications import NotificationKind, notify

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=pydantic.BaseModel)


class ApiRequest:
    """Read-only view of an HTTP API (payload v2) event plus deferred side effects."""

    def __init__(self, event: Mapping[str, Any]) -> None:
        self.event = event
        self.caller: Caller | None = None
        self.audit_entries: list[AuditEntry] = []
        self.notifications: list[tuple[NotificationKind, list[str], dict[str, Any]]] = []

    @property
    def route_key(self) -> str:
        return self.event.get("routeKey", "")

    @property
    def headers(self) -> dict[str, str]:
        # HTTP API lowercases header names, REST-style test events may not
        return {k.lower(): v for k, v in (self.event.get("headers") or {}).items()}

    @property
    def query(self) -> dict[str, str]:
        return dict(self.event.get("queryStringParameters") or {})

    @property
    def identity(self) -> dict[str, Any]:
        authorizer = (self.event.get("requestContext") or {}).get("authorizer") or {}
        return dict(authorizer.get("lambda") or {})

    @property
    def ip_address(self) -> str:
        source_ip = (self.event.get("requestContext") or {}).get("http", {}).get("sourceIp")
        if source_ip:
            return source_ip
        forwarded = self.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return self.headers.get("x-real-ip") or "unknown"

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent") or "unknown"

    def path_param(self, name: str) -> str:
        value = (self.event.get("pathParameters") or {}).get(name)
        if not value:
            raise ValidationError(f"Missing path parameter: {name}", code=ErrorCode.INVALID_REQUEST)
        return value

    def json(self) -> dict[str, Any]:
        body = self.event.get("body")
        if not body:
            return {}
        if self.event.get("isBase64Encoded"):
            body = base64.b64decode(body).decode("utf-8")
        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Request body is not valid JSON: {e}", code=ErrorCode.INVALID_REQUEST) from e
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object", code=ErrorCode.INVALID_REQUEST)
        return data

    def parse(self, model: type[M]) -> M:
        return _validate(model, self.json())

    def parse_query(self, model: type[M]) -> M:
        return _validate(model, self.query)

    def audit(
        self,
        action: str,
        entity_id: str,
        before: dict[str, Any] | None = None,
        after: dict[str, Any] | None = None,
    ) -> None:
        if self.caller is None:
            raise InternalError(f"Audit entry {action} recorded without a resolved caller")
        self.audit_entries.append(
            AuditEntry(
                entity_id=entity_id,
                action=action,
                actor_email=self.caller.email,
                actor_name=self.caller.name,
                before=before,
                after=after,
                ip_address=self.ip_address,
                user_agent=self.user_agent,
            )
        )

    def notify(self, kind: NotificationKind, recipients: list[str], data: dict[str, Any]) -> None:
        self.notifications.append((kind, recipients, data))


Route = Callable[[ApiRequest, Session], tuple[int, Any]]


def _validate(model: type[M], data: Mapping[str, Any]) -> M:
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(details) from e


def require_caller(req: ApiRequest, session: Session) -> Caller:
    if req.caller is None:
        req.caller = resolve_caller(req.identity, session)
    return req.caller


def optional_caller(req: ApiRequest, session: Session) -> Caller | None:
    """Caller when the request carries an authorizer identity, None for anonymous calls."""
    if req.caller is None and req.identity.get("userId"):
        req.caller = resolve_caller(req.identity, session)
    return req.caller


def to_json(body: Any) -> Any:
    if isinstance(body, ApiModel):
        return body.to_json()
    if isinstance(body, list):
        return [to_json(item) for item in body]
    if isinstance(body, dict):
        return {key: to_json(value) for key, value in body.items()}
    return body


def response(status_code: int, body: Any) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(to_json(body), default=str),
    }


def error_response(error: TripsError) -> dict[str, Any]:
    message = error.user_message if isinstance(error, InternalError) else error.message
    return response(error.status_code, {"error": message, "code": error.code.value})


def _after_commit(req: ApiRequest) -> None:
    if req.audit_entries:
        config = get_config()
        try:
            dynamo_client = get_dynamo_client()
        except Exception:
            logger.exception("Audit client unavailable, dropping %d entries", len(req.audit_entries))
        else:
            for entry in req.audit_entries:
                record_audit(entry, dynamo_client, config.audit_log_table)
    for kind, recipients, data in req.notifications:
        notify(kind, recipients, data)


def dispatch(event: Mapping[str, Any], routes: Mapping[str, Route]) -> dict[str, Any]:
    """Run the route matching the event inside one transaction and build the response."""
    req = ApiRequest(event)
    route = routes.get(req.route_key)
    if route is None:
        return error_response(NotFoundError(f"No route for {req.route_key or 'request'}"))

    try:
        with get_database().session_scope() as session:
            status_code, body = route(req, session)
            payload = to_json(body)
    except TripsError as e:
        if isinstance(e, InternalError):
            logger.error("%s failed: %s", req.route_key, e.message)
        else:
            logger.info("%s rejected with %s: %s", req.route_key, e.code.value, e.message)
        return error_response(e)
    except Exception:
        logger.exception("Unhandled error in %s", req.route_key)
        return error_response(InternalError("Unhandled error"))

    _after_commit(req)
    return response(status_code, payload)
