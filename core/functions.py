"""
Remote-callable functions.

Each feature module registers its handlers with ``@callable_function(name)``
in its ``functions.py``. A handler receives the caller's ``CallContext`` and
the raw request payload, and returns a JSON-friendly response. ``invoke``
turns every failure into a ``CallableError`` with a status code and a
message fit to show the player.
"""

import importlib
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from core.config import settings
from core.errors import GameError, Unauthenticated
from core.logger import setup_logger
from core.transactions import TransactionConflict, retry_on_conflict

logger = setup_logger("functions")

FUNCTION_MODULES = [
    "modules.alchemy.functions",
    "modules.economy.functions",
    "modules.exchange.functions",
    "modules.shop.functions",
]

Handler = Callable[["CallContext", dict], Awaitable[Any]]
FUNCTIONS: Dict[str, Handler] = {}

R = TypeVar("R", bound="CallableRequest")


@dataclass(frozen=True)
class CallContext:
    """Identity of the caller, supplied by the platform. ``uid`` is None when unauthenticated."""
    uid: Optional[str]


class CallableError(Exception):
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")


class CallableRequest(BaseModel):
    """Request payloads use camelCase keys on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


def parse_request(model: Type[R], data: Optional[dict]) -> R:
    try:
        return model.model_validate(data or {})
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'request'}: {err['msg']}" for err in e.errors()
        )
        raise CallableError("invalid-argument", f"Invalid request: {details}")


def require_auth(context: Optional[CallContext]) -> str:
    if context is None or not context.uid:
        raise Unauthenticated()
    return context.uid


def callable_function(name: str):
    def decorator(handler: Handler) -> Handler:
        if name in FUNCTIONS:
            raise ValueError(f"Callable function '{name}' registered twice")
        FUNCTIONS[name] = handler
        return handler
    return decorator


def load_functions():
    for module in FUNCTION_MODULES:
        importlib.import_module(module)


async def invoke(name: str, context: Optional[CallContext], data: Optional[dict] = None) -> Any:
    """
    Run a registered function. The whole operation is re-run on a write
    conflict, up to ``settings.transaction_retries`` attempts; a conflict
    means nothing was applied, so re-running cannot repeat an effect.
    """
    load_functions()
    handler = FUNCTIONS.get(name)
    if handler is None:
        raise CallableError("not-found", f"Unknown function '{name}'.")

    try:
        return await retry_on_conflict(
            lambda: handler(context, data or {}),
            attempts=settings.transaction_retries,
            backoff=settings.retry_backoff,
        )
    except CallableError:
        raise
    except GameError as e:
        raise CallableError(e.code, e.message)
    except TransactionConflict as e:
        raise CallableError(e.code, e.message)
    except Exception as e:
        logger.exception(f"Error in callable {name}: {e}")
        raise CallableError("internal", "An unexpected error occurred.")
