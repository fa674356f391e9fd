"""Router with automatic body parsing, multipart forms, correlation ids and response handling."""

import inspect
import uuid
from collections.abc import Callable
from functools import wraps
from typing import Any

import orjson
from asgi_correlation_id import correlation_id
from pydantic import BaseModel, ValidationError
from robyn import Request, Response, SubRouter, status_codes
from robyn.robyn import HttpMethod
from robyn.types import Body

from app.core.errors import MalformedMultipartError
from app.core.multipart import parse_multipart
from app.models.core import BodyType, MultipartForm

REQUEST_ID_HEADER = "x-request-id"
JSON_HEADERS = {"content-type": "application/json"}

FILE_UPLOAD_ENDPOINTS: set[str] = set()


def parse_endpoint_signature(
    sig: inspect.Signature,
) -> tuple[dict[str, tuple[BodyType, type | None]], set[str]]:
    """Parse function signature for body and multipart form parameters."""
    parsed: dict[str, tuple[BodyType, type | None]] = {}
    form_params: set[str] = set()

    for name, param in sig.parameters.items():
        annotation = param.annotation

        if annotation is MultipartForm:
            form_params.add(name)
            continue

        match annotation:
            case type() if issubclass(annotation, BaseModel):
                parsed[name] = (BodyType.PYDANTIC, type(annotation.__name__, (annotation, Body), {}))
            case type() if issubclass(annotation, Body):
                parsed[name] = (BodyType.JSONABLE, annotation)
            case type() if annotation is dict:
                parsed[name] = (BodyType.JSONABLE, None)
            case _ if name == "body":
                parsed[name] = (BodyType.JSONABLE, None)

    return parsed, form_params


def parse_request_body(
    body_config: dict[str, tuple[BodyType, type | None]],
    kwargs: dict[str, Any],
) -> Response | None:
    """Parse JSON/Pydantic body parameters."""
    for param_name, (body_type, model_cls) in body_config.items():
        if param_name not in kwargs:
            continue
        raw = kwargs[param_name]
        if not isinstance(raw, (str, bytes)):
            continue

        match body_type:
            case BodyType.PYDANTIC if model_cls:
                try:
                    kwargs[param_name] = model_cls.model_validate_json(raw)  # type: ignore[union-attr]
                except ValidationError as ex:
                    return Response(status_code=422, headers=dict(JSON_HEADERS), description=ex.json())
            case BodyType.JSONABLE:
                try:
                    kwargs[param_name] = orjson.loads(raw)
                except orjson.JSONDecodeError as ex:
                    return Response(status_code=422, headers={}, description=str(ex))
            case BodyType.RAW:
                pass
    return None


def parse_multipart_form(request: Request) -> MultipartForm:
    """Parse the raw multipart body. Empty forms are left to the handler to judge."""
    headers = getattr(request, "headers", None)
    content_type = headers.get("content-type") if headers is not None else None
    return parse_multipart(getattr(request, "body", None), content_type)


def json_response(payload: BaseModel | dict, status_code: int = status_codes.HTTP_200_OK) -> Response:
    """Serialize a model (by alias, without None fields) or dict to a JSON Response."""
    if isinstance(payload, BaseModel):
        description = payload.model_dump_json(by_alias=True, exclude_none=True)
    else:
        description = orjson.dumps(payload).decode()
    return Response(status_code=status_code, headers=dict(JSON_HEADERS), description=description)


def parse_response(result: Any) -> Response:
    """Convert handler result to Response. ``(status_code, body)`` tuples set the status."""
    match result:
        case Response():
            return result
        case (int() as status_code, BaseModel() | dict() as payload):
            return json_response(payload, status_code)
        case BaseModel() | dict():
            return json_response(result)
        case _:
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={},
                description=str(result),
            )


def bind_correlation_id(request: Request) -> str:
    """Reuse the caller's request id or mint one, and expose it to the logger."""
    headers = getattr(request, "headers", None)
    request_id = (headers.get(REQUEST_ID_HEADER) if headers is not None else None) or uuid.uuid4().hex
    correlation_id.set(request_id)
    return request_id


HTTP_METHODS = (
    HttpMethod.GET,
    HttpMethod.POST,
    HttpMethod.PUT,
    HttpMethod.DELETE,
    HttpMethod.PATCH,
    HttpMethod.HEAD,
    HttpMethod.OPTIONS,
    HttpMethod.TRACE,
    HttpMethod.CONNECT,
)


def _create_method_wrapper(original_method: Callable, router_prefix: str = "") -> Callable:
    @wraps(original_method)
    def method_wrapper(*args, **kwargs) -> Callable:
        endpoint = args[0] if args else kwargs.get("endpoint", "")
        decorator = original_method(*args, **kwargs)

        def handler_decorator(handler: Callable) -> Callable:
            sig = inspect.signature(handler)
            body_config, form_params = parse_endpoint_signature(sig)
            has_request_param = "request" in sig.parameters

            if form_params:
                full_path = f"{router_prefix}{endpoint}".replace("//", "/")
                FILE_UPLOAD_ENDPOINTS.add(full_path)

            @wraps(handler)
            async def wrapped_handler(request: Request, **h_kwargs):
                request_id = bind_correlation_id(request)

                if error := parse_request_body(body_config, h_kwargs):
                    return error

                for param_name in form_params:
                    try:
                        h_kwargs[param_name] = parse_multipart_form(request)
                    except MalformedMultipartError as ex:
                        error = json_response(
                            {"success": False, "message": ex.message}, status_codes.HTTP_400_BAD_REQUEST
                        )
                        error.headers.set(REQUEST_ID_HEADER, request_id)
                        return error

                # Pass request to handler only if it declared it
                if has_request_param:
                    h_kwargs["request"] = request

                response = parse_response(await handler(**h_kwargs))
                response.headers.set(REQUEST_ID_HEADER, request_id)
                return response

            # Build signature: always include request for Robyn injection
            new_params = [inspect.Parameter("request", inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=Request)]
            for name, param in sig.parameters.items():
                if name == "request" or name in form_params:
                    continue
                if name in body_config:
                    new_params.append(param.replace(annotation=body_config[name][1]))
                else:
                    new_params.append(param)

            wrapped_handler.__signature__ = sig.replace(parameters=new_params)  # type: ignore[attr-defined]
            return decorator(wrapped_handler)

        return handler_decorator

    return method_wrapper


class Router(SubRouter):
    """Enhanced SubRouter with automatic body/form parsing and response handling."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._prefix = kwargs.get("prefix", "")
        self._wrap_methods()

    def _wrap_methods(self) -> None:
        """Wrap HTTP methods with parsing logic."""
        for method in HTTP_METHODS:
            method_name = str(method).split(".")[-1].lower()
            if hasattr(self, method_name):
                original_method = getattr(self, method_name)
                wrapped_method = _create_method_wrapper(original_method, self._prefix)
                setattr(self, method_name, wrapped_method)
