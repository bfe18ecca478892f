"""Uniform result envelope for server-side actions."""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Generic, ParamSpec, TypeVar

import pydantic
from pydantic import BaseModel

from repairdesk.core.errors import ServiceError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)
P = ParamSpec("P")

GENERIC_ERROR_CODE = "error"


class ActionResult(BaseModel, Generic[T]):
    """``success`` with ``data``, or a caller-safe ``error`` and its ``code``."""

    success: bool
    data: T | None = None
    error: str | None = None
    code: str | None = None


def parse_payload(model: type[M], data: M | Mapping[str, Any]) -> M:
    """Validate client input, raising the domain ValidationError on failure."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as exc:
        messages = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ()))
            messages.append(f"{location}: {error['msg']}" if location else error["msg"])
        raise ValidationError("; ".join(messages)) from exc


async def run_action(operation: Awaitable[T], *, failure: str) -> ActionResult[T]:
    """Await ``operation`` and convert its outcome into an ActionResult.

    Domain errors keep their message; anything else is logged and replaced
    by ``failure`` so internal details never reach the client.
    """
    try:
        data = await operation
    except ServiceError as exc:
        logger.info("%s: %s", failure, exc.message)
        return ActionResult(success=False, error=exc.message, code=exc.code)
    except Exception:
        logger.exception(failure)
        return ActionResult(success=False, error=failure, code=GENERIC_ERROR_CODE)
    return ActionResult(success=True, data=data)


def action(
    failure: str,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[ActionResult[T]]]]:
    """Wrap an async function so it always returns an ActionResult."""

    def decorator(
        func: Callable[P, Awaitable[T]],
    ) -> Callable[P, Awaitable[ActionResult[T]]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> ActionResult[T]:
            return await run_action(func(*args, **kwargs), failure=failure)

        return wrapper

    return decorator


__all__ = ["ActionResult", "action", "parse_payload", "run_action"]
