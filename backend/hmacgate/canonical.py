"""Canonical message construction for request signing.

Both the server and signing clients derive the string that gets signed from
the same request fields, so this module is the single definition of the
format::

    METHOD \\n TIMESTAMP \\n lower-cased, URL-decoded path \\n k1=v1&k2=v2...

Parameters are URL-encoded and sorted by key. The sort is stable so entries
that share a key keep their arrival order.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Final, Iterable, NamedTuple, Pattern, TypeVar
from urllib.parse import unquote

from pydantic import BaseModel, Field
from starlette.routing import compile_path

_IDENTITY_MARKER = "signing_identity"

EndpointT = TypeVar("EndpointT", bound=Callable[..., Any])


class ParameterEntry(NamedTuple):
    """A single signed parameter. Keys may repeat."""

    key: str
    value: str


def IdentityField(default: Any = None, **kwargs: Any) -> Any:
    """Declare a model field that identifies a record and is never signed."""

    extra = dict(kwargs.pop("json_schema_extra", None) or {})
    extra[_IDENTITY_MARKER] = True
    return Field(default, json_schema_extra=extra, **kwargs)


def _is_identity(field_info: Any) -> bool:
    extra = field_info.json_schema_extra
    return isinstance(extra, dict) and bool(extra.get(_IDENTITY_MARKER))


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


class SignedModel(BaseModel):
    """Base for JSON request bodies that take part in the signature.

    Every declared field contributes one entry named by its wire alias, except
    fields declared with :func:`IdentityField` and fields whose value is
    ``None``.
    """

    def signing_entries(self) -> list[ParameterEntry]:
        dumped = self.model_dump(mode="json", by_alias=True)
        entries: list[ParameterEntry] = []
        for name, field_info in type(self).model_fields.items():
            if _is_identity(field_info):
                continue
            key = field_info.serialization_alias or field_info.alias or name
            value = dumped.get(key)
            if value is None:
                continue
            entries.append(ParameterEntry(key, _stringify(value)))
        return entries


class SignedBodyRegistry:
    """Maps ``(method, path template)`` to the JSON body schema a route signs."""

    def __init__(self) -> None:
        self._routes: list[tuple[str, Pattern[str], type[SignedModel]]] = []

    def register(self, method: str, path: str, model: type[SignedModel]) -> None:
        path_regex, _, _ = compile_path(path)
        self._routes.append((method.upper(), path_regex, model))

    def resolve(self, method: str, path: str) -> type[SignedModel] | None:
        for route_method, path_regex, model in self._routes:
            if route_method == method.upper() and path_regex.match(path):
                return model
        return None


SIGNED_BODIES: Final = SignedBodyRegistry()


def signed_body(
    model: type[SignedModel],
    *,
    method: str,
    path: str,
    registry: SignedBodyRegistry = SIGNED_BODIES,
) -> Callable[[EndpointT], EndpointT]:
    """Declare the JSON body schema that a route's signature covers.

    ``path`` is the full route path, router prefix included::

        @router.post("")
        @signed_body(ContactCreate, method="POST", path="/api/contacts")
        async def create_contact(payload: ContactCreate): ...
    """

    def decorator(endpoint: EndpointT) -> EndpointT:
        registry.register(method, path, model)
        return endpoint

    return decorator


@dataclass
class SignedRequest:
    """Framework-neutral view of the request fields the gate needs."""

    method: str
    path: str
    timestamp: str | None = None
    authentication: str | None = None
    query: list[ParameterEntry] = field(default_factory=list)
    form: list[ParameterEntry] = field(default_factory=list)
    body: list[ParameterEntry] = field(default_factory=list)


# Bytes left as-is by form encoding; everything else but space is %xx.
_UNESCAPED = frozenset(
    b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-_.!*()"
)


def encode_value(value: str) -> str:
    """Form-encode a parameter value.

    Space becomes ``+``, letters, digits and ``-_.!*()`` pass through, and every
    other UTF-8 byte is written as a lower-case ``%xx`` escape.
    """

    encoded = []
    for byte in value.encode("utf-8"):
        if byte in _UNESCAPED:
            encoded.append(chr(byte))
        elif byte == 0x20:
            encoded.append("+")
        else:
            encoded.append(f"%{byte:02x}")
    return "".join(encoded)


def collect_parameters(request: SignedRequest) -> list[ParameterEntry]:
    """Gather and sort the request's parameter entries.

    Query entries are always used. Form entries are appended after them. When a
    request carries neither, the structured body entries are used instead.
    """

    entries = [ParameterEntry(key, encode_value(value)) for key, value in request.query]
    if not entries and not request.form:
        entries = [ParameterEntry(key, encode_value(value)) for key, value in request.body]
    else:
        entries.extend(ParameterEntry(key, encode_value(value)) for key, value in request.form)

    return sorted(entries, key=lambda entry: entry.key)


def build_parameter_message(entries: Iterable[ParameterEntry]) -> str:
    return "&".join(f"{entry.key}={entry.value}" for entry in entries)


def canonical_path(path: str) -> str:
    return unquote(path.lower())


def build_canonical_message(request: SignedRequest) -> str:
    """Return the canonical string to sign for ``request``."""

    parameter_message = build_parameter_message(collect_parameters(request))
    return "\n".join(
        (
            request.method.upper(),
            request.timestamp or "",
            canonical_path(request.path),
            parameter_message,
        )
    )
