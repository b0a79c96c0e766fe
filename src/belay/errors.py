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

"""Exception hierarchy for :mod:`belay`.

Two families live here. :class:`ExpectationError` and its subclasses are the
failure records handed to expectation handlers; they are values first and only
become raised errors when a handler such as :class:`belay.Throw` escalates
them. The remaining classes are ordinary library errors signalling misuse of
the framework itself.
"""

from __future__ import annotations

from typing import cast, override

MESSAGE_EXPECTATION_FAILED = "An expectation failed."
MESSAGE_EXPECTED_CONDITION_FALSE_BUT_TRUE = (
    "Expected condition to be false but was true."
)
MESSAGE_EXPECTED_CONDITION_TRUE_BUT_FALSE = (
    "Expected condition to be true but was false."
)
MESSAGE_EXPECTED_VALUE_NON_NULL_BUT_NULL = "Expected value to be non-null but was null."
MESSAGE_EXPECTED_VALUE_NULL_BUT_NON_NULL = "Expected value to be null but was non-null."
MESSAGE_EXPECTED_VALUE_OF_TYPE = "Expected value to be of a different type than is was."
MESSAGE_EXCEPTION_OCCURRED = "An exception occurred."


class BelayError(Exception):
    """Base class for all belay exceptions.

    Catch ``BelayError`` to handle every library-specific error with a single
    clause while letting unrelated exceptions propagate normally.
    """


class ExpectationError(BelayError):
    """Abstract failure record produced when an expectation is not met.

    Instances carry a non-empty ``message`` and an optional ``cause``. The
    cause is also installed as ``__cause__`` so that escalated failures chain
    the underlying error in tracebacks.

    Example:
        Inspect a failure inside a handler::

            class Record(ContinueExpectationHandler):
                def handle_fail(self, exception: ExpectationError) -> None:
                    print(exception.message, exception.cause)
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        if type(self) is ExpectationError:
            raise TypeError(
                "ExpectationError is abstract; raise FailedExpectationError "
                "or CaughtExpectationError instead."
            )
        if not isinstance(message, str):  # pyright: ignore[reportUnnecessaryIsInstance]
            raise TypeError("Expectation messages must be strings.")
        super().__init__(message)
        self.__cause__ = cause

    @property
    def message(self) -> str:
        """Human readable description of the failed expectation."""

        return cast(str, self.args[0])

    @property
    def cause(self) -> BaseException | None:
        """Underlying error that led to this failure, if any."""

        return self.__cause__

    @override
    def __str__(self) -> str:
        return self.message

    @override
    def __repr__(self) -> str:
        if self.cause is None:
            return f"{type(self).__name__}({self.message!r})"
        return f"{type(self).__name__}({self.message!r}, cause={self.cause!r})"


class FailedExpectationError(ExpectationError):
    """An explicit expectation check evaluated to a violated state."""


class CaughtExpectationError(ExpectationError):
    """An error raised inside a scoped block, reinterpreted as a failure.

    Produced by exiting handlers running with ``catch_exceptions=True``. The
    original error is always available through :attr:`cause`.
    """


class HandlerContractError(BelayError, RuntimeError):
    """Raised when a path that must diverge returned normally instead.

    Exiting handlers promise never to return from ``handle_fail`` and
    ``on_fail`` callbacks passed to the divergent facade checks promise the
    same. Breaking that promise would let code after a failed check run with
    the checked state violated, so the framework raises this error instead.
    """


class ExpectationScopeError(BelayError, RuntimeError):
    """Raised when a scope exit is requested outside a scoped block."""


class BelayConfigError(BelayError, ValueError):
    """Raised when configuration values cannot be interpreted."""


__all__ = [
    "MESSAGE_EXCEPTION_OCCURRED",
    "MESSAGE_EXPECTATION_FAILED",
    "MESSAGE_EXPECTED_CONDITION_FALSE_BUT_TRUE",
    "MESSAGE_EXPECTED_CONDITION_TRUE_BUT_FALSE",
    "MESSAGE_EXPECTED_VALUE_NON_NULL_BUT_NULL",
    "MESSAGE_EXPECTED_VALUE_NULL_BUT_NON_NULL",
    "MESSAGE_EXPECTED_VALUE_OF_TYPE",
    "BelayConfigError",
    "BelayError",
    "CaughtExpectationError",
    "ExpectationError",
    "ExpectationScopeError",
    "FailedExpectationError",
    "HandlerContractError",
]
