"""
Store API handlers with decorator-based registration

Handler modules decorate plain async functions with @api_handler; the app
factory mounts everything collected here with register_fastapi_routes().
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, TypeVar

from pimx.core.logger import get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI

F = TypeVar("F", bound=Callable[..., Any])

SUPPORTED_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH")

logger = get_logger(__name__)


@dataclass
class HandlerSpec:
    """Route metadata captured by @api_handler"""

    func: Callable[..., Any]
    method: str
    path: str
    module: str
    tags: List[str] = field(default_factory=list)
    summary: str = ""
    description: str = ""


# Keyed by "METHOD path" so one path can carry several verbs
_handler_registry: Dict[str, HandlerSpec] = {}


def api_handler(
    method: str = "POST",
    path: Optional[str] = None,
    tags: Optional[List[str]] = None,
    summary: Optional[str] = None,
    description: Optional[str] = None,
    body: Optional[type] = None,
):
    """
    Register a function as a store API route

    @param method - HTTP method
    @param path - Route path relative to the registration prefix, defaults to /<function name>
    @param tags - OpenAPI tags, defaults to the module name
    @param summary - OpenAPI summary, defaults to the first docstring line
    @param description - OpenAPI description, defaults to the docstring
    @param body - Request model, documented here; FastAPI reads it from the signature
    """
    verb = method.upper()
    if verb not in SUPPORTED_METHODS:
        raise ValueError(f"Unsupported HTTP method: {method}")

    def decorator(func: F) -> F:
        module = func.__module__.rsplit(".", 1)[-1]
        doc = (func.__doc__ or "").strip()
        spec = HandlerSpec(
            func=func,
            method=verb,
            path=path or f"/{func.__name__}",
            module=module,
            tags=tags or [module],
            summary=summary or (doc.splitlines()[0] if doc else func.__name__),
            description=description or doc,
        )
        _handler_registry[f"{spec.method} {spec.path}"] = spec
        return func

    return decorator


def register_fastapi_routes(app: "FastAPI", prefix: str = "/api") -> None:
    """
    Mount every registered handler on the app

    @param app - FastAPI application instance
    @param prefix - Path prefix for every route
    """
    logger.info(f"Registering {len(_handler_registry)} store routes under {prefix}")

    for spec in _handler_registry.values():
        full_path = f"{prefix}{spec.path}"
        try:
            app.add_api_route(
                full_path,
                spec.func,
                methods=[spec.method],
                tags=spec.tags,
                summary=spec.summary,
                description=spec.description,
                response_model=None,
            )
        except (TypeError, ValueError, AssertionError) as e:
            logger.error(f"✗ Failed to register route {spec.method} {full_path}: {e}", exc_info=True)
            continue
        logger.debug(f"✓ Registered {spec.method} {full_path} ({spec.module}.{spec.func.__name__})")


# Import handler modules so their decorators run
# ruff: noqa: E402
from . import kv, state, system

__all__ = [
    "HandlerSpec",
    "api_handler",
    "register_fastapi_routes",
    "kv",
    "state",
    "system",
]
