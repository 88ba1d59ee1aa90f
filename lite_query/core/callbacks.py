"""Engine callback dispatch.

Each Database owns one CallbackRegistry holding three nullable hook slots
(trace, authorizer, custom functions). The registry installs small adapters
with the engine; the adapters own the host closures, invoke them, and turn
their results or errors into something the engine understands.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from lite_query.core.enums import AuthorizerResult
from lite_query.core.params import to_bindable

logger = logging.getLogger(__name__)

TraceCallback = Callable[[str], Any]
AuthorizerCallback = Callable[..., Any]
FunctionCallback = Callable[..., Any]


class FunctionContext:
    """Handle passed to a custom function as its first argument.

    The function reports its value by assigning ``result`` (left unset, the
    SQL value is NULL) or fails the statement with ``set_error``.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._result: Any = None
        self.error: str | None = None

    @property
    def result(self) -> Any:
        return self._result

    @result.setter
    def result(self, value: Any) -> None:
        self._result = to_bindable(value)

    def set_error(self, message: str) -> None:
        self.error = message


class _FunctionSignalledError(Exception):
    """Raised inside the engine callback after ``FunctionContext.set_error``."""


def authorizer_decision(value: Any) -> AuthorizerResult:
    """Translate an authorizer closure's return value.

    ``True`` allows, ``False`` denies and ``None`` ignores; ints and
    AuthorizerResult members are taken as-is. Anything else denies.
    """
    if value is None:
        return AuthorizerResult.IGNORE
    if value is True:
        return AuthorizerResult.ALLOW
    if value is False:
        return AuthorizerResult.DENY
    try:
        return AuthorizerResult(value)
    except (TypeError, ValueError):
        logger.warning("Authorizer returned unsupported value %r; denying", value)
        return AuthorizerResult.DENY


class CallbackRegistry:
    """Per-connection callback slots and their engine-side adapters."""

    def __init__(self, adapter: Any, handle: Any) -> None:
        self._adapter = adapter
        self._handle = handle
        self._trace: TraceCallback | None = None
        self._authorizer: AuthorizerCallback | None = None
        self._functions: dict[tuple[str, int], FunctionCallback] = {}
        self._trace_suspended = 0
        self._authorizer_suspended = 0
        self._pending: tuple[str, BaseException] | None = None

    @property
    def trace(self) -> TraceCallback | None:
        return self._trace

    @property
    def authorizer(self) -> AuthorizerCallback | None:
        return self._authorizer

    @property
    def functions(self) -> list[tuple[str, int]]:
        return sorted(self._functions)

    # --- Trace ---

    def set_trace(self, callback: TraceCallback | None) -> None:
        self._trace = callback
        self._adapter.set_trace(self._handle, self._dispatch_trace if callback else None)
        logger.debug("Trace callback %s", "installed" if callback else "cleared")

    def _dispatch_trace(self, sql: str) -> None:
        if self._trace is None or self._trace_suspended:
            return
        try:
            self._trace(sql)
        except Exception:
            logger.exception("Trace callback raised; ignoring")

    # --- Authorizer ---

    def set_authorizer(self, callback: AuthorizerCallback | None) -> None:
        self._authorizer = callback
        self._adapter.set_authorizer(
            self._handle, self._dispatch_authorizer if callback else None
        )
        logger.debug("Authorizer %s", "installed" if callback else "cleared")

    def _dispatch_authorizer(
        self,
        action: int,
        arg1: str | None,
        arg2: str | None,
        dbname: str | None,
        source: str | None,
    ) -> int:
        if self._authorizer is None or self._authorizer_suspended:
            return int(AuthorizerResult.ALLOW)
        try:
            value = self._authorizer(action, arg1, arg2, dbname, source)
        except Exception:
            logger.exception("Authorizer raised; denying action %s", action)
            return int(AuthorizerResult.DENY)
        return int(authorizer_decision(value))

    # --- Functions ---

    def create_function(
        self,
        name: str,
        arity: int,
        callback: FunctionCallback,
        *,
        deterministic: bool = False,
    ) -> None:
        self._functions[(name, arity)] = callback
        self._adapter.create_function(
            self._handle,
            name,
            arity,
            self._function_adapter(name, callback),
            deterministic,
        )
        logger.debug("Registered SQL function %s/%d", name, arity)

    def _function_adapter(self, name: str, callback: FunctionCallback) -> Callable[..., Any]:
        def invoke(*args: Any) -> Any:
            context = FunctionContext(name)
            try:
                callback(context, *args)
            except Exception as exc:
                self._pending = (f"{name}: {exc}", exc)
                raise
            if context.error is not None:
                signal = _FunctionSignalledError(context.error)
                self._pending = (context.error, signal)
                raise signal
            return context.result

        return invoke

    def take_pending_error(self) -> tuple[str, BaseException] | None:
        """Return and clear the error recorded by the last failing function."""
        pending, self._pending = self._pending, None
        return pending

    # --- Suspension ---

    @contextmanager
    def suspended(self, *, trace: bool = True, authorizer: bool = True) -> Iterator[None]:
        """Silence hooks while the execution layer runs its own statements."""
        if trace:
            self._trace_suspended += 1
        if authorizer:
            self._authorizer_suspended += 1
        try:
            yield
        finally:
            if trace:
                self._trace_suspended -= 1
            if authorizer:
                self._authorizer_suspended -= 1
