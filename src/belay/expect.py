# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""The :class:`Expect` facade, entry point for all expectation calls.

Create one instance for the application and route checks through it::

    expect = Expect()

    def init_application() -> None:
        expect.on_global_fail = Escalate() if DEBUG else Log()

    def eat(banana: Banana) -> None:
        expect(banana.is_ripe)
        expect.is_not_none(banana.plant)

Scoped blocks combine the global handler with a local one. The global handler
is always notified first::

    price = expect.run(Return(0.0), lambda check: check.is_not_none(quote).price)
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from functools import wraps
from typing import Concatenate, NoReturn, cast, overload, override

from .config import default_catch_exceptions, default_global_handler
from .errors import (
    MESSAGE_EXPECTED_CONDITION_FALSE_BUT_TRUE,
    MESSAGE_EXPECTED_CONDITION_TRUE_BUT_FALSE,
    MESSAGE_EXPECTED_VALUE_NON_NULL_BUT_NULL,
    MESSAGE_EXPECTED_VALUE_NULL_BUT_NON_NULL,
    MESSAGE_EXPECTED_VALUE_OF_TYPE,
    ExpectationError,
    FailedExpectationError,
    HandlerContractError,
)
from .handlers import Continue, ContinueExpectationHandler, ExitExpectationHandler
from .receivers import (
    ContinueExpectationReceiver,
    ExitExpectationReceiver,
    ExpectedType,
)

type OnFail = Callable[[], NoReturn]


class _GlobalThenLocalContinue(ContinueExpectationHandler):
    def __init__(self, expect: Expect, local: ContinueExpectationHandler) -> None:
        super().__init__()
        self._expect = expect
        self._local = local

    @override
    def handle_fail(self, exception: ExpectationError) -> None:
        self._expect.on_global_fail.handle_fail(exception)
        self._local.handle_fail(exception)


class _GlobalThenLocalExit[T](ExitExpectationHandler[T]):
    def __init__(self, expect: Expect, local: ExitExpectationHandler[T]) -> None:
        super().__init__()
        self._expect = expect
        self._local = local

    @override
    def handle_fail(self, exception: ExpectationError) -> NoReturn:
        self._expect.on_global_fail.handle_fail(exception)
        self._local.handle_fail(exception)

    @override
    def on_run(self, value: T) -> None:
        self._local.on_run(value)


class Expect:
    """Global expectation facade.

    ``on_global_fail`` receives every failure reported through this facade,
    including failures inside :meth:`run` blocks where it is notified before
    the local handler. It is plain mutable state read at each failure: the
    last assignment wins and concurrent reassignment from several threads is
    not supported.
    """

    def __init__(
        self,
        on_global_fail: ContinueExpectationHandler | None = None,
        *,
        catch_exceptions: bool = False,
    ) -> None:
        super().__init__()
        self.on_global_fail = (
            on_global_fail if on_global_fail is not None else Continue()
        )
        self.catch_exceptions = catch_exceptions

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Expect:
        """Build a facade configured from ``BELAY_*`` environment variables."""

        return cls(
            default_global_handler(env),
            catch_exceptions=default_catch_exceptions(env),
        )

    @property
    def on_global_fail(self) -> ContinueExpectationHandler:
        """Handler notified of every failure reported through this facade."""

        return self._on_global_fail

    @on_global_fail.setter
    def on_global_fail(self, handler: ContinueExpectationHandler) -> None:
        if not isinstance(handler, ContinueExpectationHandler):  # pyright: ignore[reportUnnecessaryIsInstance]
            raise TypeError(
                "on_global_fail must be a ContinueExpectationHandler, got "
                f"{type(handler).__name__}."
            )
        self._on_global_fail = handler

    def __call__(
        self,
        condition: bool,  # noqa: FBT001
        message: str = MESSAGE_EXPECTED_CONDITION_TRUE_BUT_FALSE,
        *,
        on_fail: Callable[[], object] | None = None,
    ) -> None:
        """Report a failure if ``condition`` is false, then run ``on_fail``."""

        if not condition:
            self._notify(message)
            if on_fail is not None:
                on_fail()

    def fail(self, message: str, cause: BaseException | None = None) -> None:
        """Report a failure to :attr:`on_global_fail`."""

        self._receiver().fail(message, cause)

    # The check methods below accept an optional ``on_fail`` callback. Without
    # it they behave like soft checks. With it they notify the global handler,
    # then call ``on_fail``, which must leave the caller's frame (raise, or
    # return from a surrounding scoped block); code after the call can then
    # rely on the checked state.

    def is_true(
        self,
        condition: bool,  # noqa: FBT001
        message: str = MESSAGE_EXPECTED_CONDITION_TRUE_BUT_FALSE,
        *,
        on_fail: OnFail | None = None,
    ) -> None:
        if not condition:
            self._notify(message, on_fail)

    def is_false(
        self,
        condition: bool,  # noqa: FBT001
        message: str = MESSAGE_EXPECTED_CONDITION_FALSE_BUT_TRUE,
        *,
        on_fail: OnFail | None = None,
    ) -> None:
        if condition:
            self._notify(message, on_fail)

    @overload
    def is_not_none(self, value: object, message: str = ...) -> None: ...

    @overload
    def is_not_none[V](
        self, value: V | None, message: str = ..., *, on_fail: OnFail
    ) -> V: ...

    def is_not_none[V](
        self,
        value: V | None,
        message: str = MESSAGE_EXPECTED_VALUE_NON_NULL_BUT_NULL,
        *,
        on_fail: OnFail | None = None,
    ) -> V | None:
        if value is None:
            self._notify(message, on_fail)
        return cast(V, value) if on_fail is not None else None

    def is_none(
        self,
        value: object,
        message: str = MESSAGE_EXPECTED_VALUE_NULL_BUT_NON_NULL,
        *,
        on_fail: OnFail | None = None,
    ) -> None:
        if value is not None:
            self._notify(message, on_fail)

    @overload
    def is_type(
        self, value: object, expected_type: ExpectedType[object], message: str = ...
    ) -> None: ...

    @overload
    def is_type[V](
        self,
        value: object,
        expected_type: ExpectedType[V],
        message: str = ...,
        *,
        on_fail: OnFail,
    ) -> V: ...

    def is_type[V](
        self,
        value: object,
        expected_type: ExpectedType[V],
        message: str = MESSAGE_EXPECTED_VALUE_OF_TYPE,
        *,
        on_fail: OnFail | None = None,
    ) -> V | None:
        if not isinstance(value, expected_type):
            self._notify(message, on_fail)
        return cast(V, value) if on_fail is not None else None

    @overload
    def run[V](
        self,
        handler: ContinueExpectationHandler,
        block: Callable[[ContinueExpectationReceiver], V],
    ) -> V: ...

    @overload
    def run[V](
        self,
        handler: ExitExpectationHandler[V],
        block: Callable[[ExitExpectationReceiver[V]], V],
        *,
        catch_exceptions: bool | None = None,
    ) -> V: ...

    def run(
        self,
        handler: ContinueExpectationHandler | ExitExpectationHandler[object],
        block: Callable[..., object],
        *,
        catch_exceptions: bool | None = None,
    ) -> object:
        """Run ``block`` with failures sent to the global handler, then ``handler``.

        For an exiting ``handler`` a failed check leaves ``block`` and its
        result is whatever the handler supplies. ``catch_exceptions`` defaults
        to :attr:`catch_exceptions` and only applies to exiting handlers.
        """

        if isinstance(handler, ContinueExpectationHandler):
            if catch_exceptions:
                raise TypeError(
                    "catch_exceptions requires an ExitExpectationHandler."
                )
            return _GlobalThenLocalContinue(self, handler).run(block)
        resolved = (
            self.catch_exceptions if catch_exceptions is None else catch_exceptions
        )
        return _GlobalThenLocalExit(self, handler).run(
            block, catch_exceptions=resolved
        )

    @overload
    def guard[**P, V](
        self, handler: ContinueExpectationHandler
    ) -> Callable[
        [Callable[Concatenate[ContinueExpectationReceiver, P], V]], Callable[P, V]
    ]: ...

    @overload
    def guard[**P, V](
        self,
        handler: ExitExpectationHandler[V],
        *,
        catch_exceptions: bool | None = None,
    ) -> Callable[
        [Callable[Concatenate[ExitExpectationReceiver[V], P], V]], Callable[P, V]
    ]: ...

    def guard(
        self,
        handler: ContinueExpectationHandler | ExitExpectationHandler[object],
        *,
        catch_exceptions: bool | None = None,
    ) -> Callable[[Callable[..., object]], Callable[..., object]]:
        """Decorate a function so each call runs as a scoped block.

        The wrapped function receives the block's receiver as its first
        positional argument::

            @expect.guard(Return(None))
            def parse_port(check, raw: str) -> int | None:
                port = check.is_type(int(raw), int)
                check.is_true(0 < port < 65536, "port out of range")
                return port

            parse_port("8080")  # 8080
            parse_port("0")  # None
        """

        if isinstance(handler, ContinueExpectationHandler) and catch_exceptions:
            raise TypeError("catch_exceptions requires an ExitExpectationHandler.")

        def decorator(func: Callable[..., object]) -> Callable[..., object]:
            @wraps(func)
            def wrapped(*args: object, **kwargs: object) -> object:
                def block(receiver: object) -> object:
                    return func(receiver, *args, **kwargs)

                if isinstance(handler, ContinueExpectationHandler):
                    return self.run(handler, block)
                return self.run(handler, block, catch_exceptions=catch_exceptions)

            return wrapped

        return decorator

    def _receiver(self) -> ContinueExpectationReceiver:
        return ContinueExpectationReceiver(self.on_global_fail)

    def _notify(self, message: str, on_fail: OnFail | None = None) -> None:
        self._receiver().fail(message)
        if on_fail is None:
            return
        on_fail()
        raise HandlerContractError(
            "on_fail returned normally; it must raise or otherwise leave the "
            "calling frame."
        ) from FailedExpectationError(message)


__all__ = ["Expect", "OnFail"]
