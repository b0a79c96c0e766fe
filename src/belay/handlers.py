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

"""Expectation handlers and the scoped block runners built on them.

Handlers decide what a failed expectation means. They come in two families:

``ContinueExpectationHandler``
    ``handle_fail`` returns normally and the failing check returns to its
    caller. Suitable for "observe and proceed" policies such as
    :class:`Continue` and :class:`Log`.

``ExitExpectationHandler``
    ``handle_fail`` never returns. It either raises (:class:`Throw`) or calls
    :meth:`~ExitExpectationHandler.return_from_block` to make the enclosing
    block yield a substitute value (:class:`Return`, :class:`ReturnLast`).

Example::

    def total(check: ExitExpectationReceiver[int]) -> int:
        order = check.is_not_none(load_order())
        check.is_true(order.lines, "order has no lines")
        return sum(line.amount for line in order.lines)

    Return(0).run(total)  # 0 when the order is missing or empty
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import NoReturn, Protocol, cast, overload, override

from ._scope import BlockScope, ScopeExit, exit_scope
from .errors import (
    MESSAGE_EXCEPTION_OCCURRED,
    CaughtExpectationError,
    ExpectationError,
    ExpectationScopeError,
    HandlerContractError,
)
from .logging import StructuredLogger, get_logger
from .receivers import ContinueExpectationReceiver, ExitExpectationReceiver

type FailCallback = Callable[[ExpectationError], object]
type ExceptionFactory = Callable[[ExpectationError], BaseException]

_logger: StructuredLogger = get_logger(__name__)


class ExpectationHandler[R](Protocol):
    """Capability turning an expectation failure into a result of type ``R``."""

    def handle_fail(self, exception: ExpectationError) -> R: ...


class ContinueExpectationHandler(ABC):
    """Base class for handlers that let execution continue after a failure.

    ``handle_fail`` may be called any number of times and returns normally.
    """

    @abstractmethod
    def handle_fail(self, exception: ExpectationError) -> None:
        """React to ``exception``; returning lets the failing check return."""

    def run[V](self, block: Callable[[ContinueExpectationReceiver], V]) -> V:
        """Run ``block`` with a receiver bound to this handler."""

        return block(ContinueExpectationReceiver(self))


GlobalExpectationHandler = ContinueExpectationHandler


class ExitExpectationHandler[T](ABC):
    """Base class for handlers that always leave the block on failure.

    Subclasses implement :meth:`handle_fail` and end it by raising or by
    calling :meth:`return_from_block`. Falling off the end of ``handle_fail``
    is reported as :class:`~belay.errors.HandlerContractError`.
    """

    @abstractmethod
    def handle_fail(self, exception: ExpectationError) -> NoReturn:
        """React to ``exception`` without returning."""

    def return_from_block(self, value: T) -> NoReturn:  # noqa: PLR6301
        """Make the block whose failure is being handled yield ``value``."""

        exit_scope(value)

    def on_run(self, value: T) -> None:
        """Hook invoked with the value every completed block yields."""

    def run(
        self,
        block: Callable[[ExitExpectationReceiver[T]], T],
        *,
        catch_exceptions: bool = False,
    ) -> T:
        """Run ``block`` and return its result or the handler's substitute.

        With ``catch_exceptions`` enabled, any :class:`Exception` escaping the
        block is wrapped in :class:`~belay.errors.CaughtExpectationError` and
        handled like a failed check. Framework misuse errors
        (:class:`~belay.errors.HandlerContractError`,
        :class:`~belay.errors.ExpectationScopeError`) are never reclassified,
        and errors raised by the handler itself while handling a caught error
        propagate to the caller.
        """

        scope = BlockScope(type(self).__name__)
        receiver = ExitExpectationReceiver(self, scope)
        try:
            result = _run_block(block, receiver, catch_exceptions=catch_exceptions)
        except ScopeExit as signal:
            if signal.scope is not scope:
                raise
            result = cast(T, signal.value)
            _logger.debug(
                "Scoped block exited early.",
                event="belay.block.exited",
                context={"handler": scope.label},
            )
        finally:
            scope.active = False
        self.on_run(result)
        return result


def _run_block[V](
    block: Callable[[ExitExpectationReceiver[V]], V],
    receiver: ExitExpectationReceiver[V],
    *,
    catch_exceptions: bool,
) -> V:
    # ScopeExit derives from BaseException and passes straight through.
    try:
        return block(receiver)
    except (HandlerContractError, ExpectationScopeError):
        raise
    except Exception as error:
        if not catch_exceptions:
            raise
        _logger.debug(
            "Reclassified exception raised inside scoped block.",
            event="belay.block.caught",
            context={"error": type(error).__name__},
        )
        receiver.diverge(CaughtExpectationError(MESSAGE_EXCEPTION_OCCURRED, error))


class Continue(ContinueExpectationHandler):
    """Continue execution even when expectations fail.

    ``also`` runs in place for every failure before the check returns.
    """

    def __init__(self, also: FailCallback | None = None) -> None:
        super().__init__()
        self._also = also

    @override
    def handle_fail(self, exception: ExpectationError) -> None:
        if self._also is not None:
            self._also(exception)


class Log(ContinueExpectationHandler):
    """Log every failure as a structured record and continue."""

    def __init__(
        self,
        logger: logging.Logger | None = None,
        *,
        level: int = logging.WARNING,
        also: FailCallback | None = None,
    ) -> None:
        super().__init__()
        self._logger = get_logger(__name__, logger_override=logger)
        self._level = level
        self._also = also

    @override
    def handle_fail(self, exception: ExpectationError) -> None:
        self._logger.log(
            self._level,
            exception.message,
            event="belay.expectation.failed",
            context={
                "kind": type(exception).__name__,
                "cause": repr(exception.cause) if exception.cause else None,
            },
            exc_info=exception.cause,
        )
        if self._also is not None:
            self._also(exception)


class Escalate(ContinueExpectationHandler):
    """Raise every failure as an error, typically while developing.

    Meant for :attr:`belay.Expect.on_global_fail` so soft checks behave like
    assertions in development builds.
    """

    def __init__(self, also: FailCallback | None = None) -> None:
        super().__init__()
        self._also = also

    @override
    def handle_fail(self, exception: ExpectationError) -> None:
        if self._also is not None:
            self._also(exception)
        raise exception


class Return[T](ExitExpectationHandler[T]):
    """Leave the block with a fixed value when an expectation fails.

    ``Return()`` yields ``None``; ``Return(value)`` yields ``value``.
    """

    @overload
    def __init__(self: Return[None], *, also: FailCallback | None = None) -> None: ...

    @overload
    def __init__(self, value: T, also: FailCallback | None = None) -> None: ...

    def __init__(self, value: object = None, also: FailCallback | None = None) -> None:
        super().__init__()
        self._value = cast(T, value)
        self._also = also

    @property
    def value(self) -> T:
        return self._value

    @override
    def handle_fail(self, exception: ExpectationError) -> NoReturn:
        if self._also is not None:
            self._also(exception)
        self.return_from_block(self._value)


class ReturnLast[T](ExitExpectationHandler[T]):
    """Leave the block with the last value a block run through this handler yielded.

    Until a block completes, failures yield ``default``. The remembered value
    is instance state, so share an instance across threads only with external
    synchronization.
    """

    def __init__(self, default: T, also: FailCallback | None = None) -> None:
        super().__init__()
        self._default = default
        self._also = also
        self._last: T | None = None
        self._has_last = False

    @property
    def has_last(self) -> bool:
        """Whether a block has completed, substituted results included."""

        return self._has_last

    @property
    def last(self) -> T:
        """Value a failure would currently yield."""

        return cast(T, self._last) if self._has_last else self._default

    def reset(self) -> None:
        """Forget the remembered value so failures yield the default again."""

        self._last = None
        self._has_last = False

    @override
    def on_run(self, value: T) -> None:
        self._last = value
        self._has_last = True

    @override
    def handle_fail(self, exception: ExpectationError) -> NoReturn:
        if self._also is not None:
            self._also(exception)
        self.return_from_block(self.last)


class Throw[T](ExitExpectationHandler[T]):
    """Raise when an expectation fails.

    The raised error is ``exception_factory(exception)`` when a factory is
    supplied and the expectation error itself otherwise.
    """

    def __init__(
        self,
        exception_factory: ExceptionFactory | None = None,
        also: FailCallback | None = None,
    ) -> None:
        super().__init__()
        self._exception_factory = exception_factory
        self._also = also

    @override
    def handle_fail(self, exception: ExpectationError) -> NoReturn:
        if self._also is not None:
            self._also(exception)
        if self._exception_factory is None:
            raise exception
        raise self._exception_factory(exception)


__all__ = [
    "Continue",
    "ContinueExpectationHandler",
    "Escalate",
    "ExceptionFactory",
    "ExitExpectationHandler",
    "ExpectationHandler",
    "FailCallback",
    "GlobalExpectationHandler",
    "Log",
    "Return",
    "ReturnLast",
    "Throw",
]
