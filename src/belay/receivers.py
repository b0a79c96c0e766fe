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

"""Receivers exposing the expectation check vocabulary.

A receiver is handed to a scoped block and forwards every failed check to the
handler it was created with. Two flavours exist:

- :class:`ContinueExpectationReceiver` returns normally after the handler runs,
  so checks behave like soft assertions.
- :class:`ExitExpectationReceiver` never returns from a failed check. Checks
  that do return therefore guarantee the checked state, and
  :meth:`~ExitExpectationReceiver.is_not_none` and
  :meth:`~ExitExpectationReceiver.is_type` hand back the value with its
  narrowed type::

      def load(check: ExitExpectationReceiver[str]) -> str:
          user = check.is_not_none(find_user(), "user must exist")
          return user.name  # user is no longer Optional here
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

from ._scope import BlockScope, dispatch_failure
from .errors import (
    MESSAGE_EXPECTATION_FAILED,
    MESSAGE_EXPECTED_CONDITION_FALSE_BUT_TRUE,
    MESSAGE_EXPECTED_CONDITION_TRUE_BUT_FALSE,
    MESSAGE_EXPECTED_VALUE_NON_NULL_BUT_NULL,
    MESSAGE_EXPECTED_VALUE_NULL_BUT_NON_NULL,
    MESSAGE_EXPECTED_VALUE_OF_TYPE,
    ExpectationError,
    FailedExpectationError,
    HandlerContractError,
)

if TYPE_CHECKING:
    from .handlers import ContinueExpectationHandler, ExitExpectationHandler

type ExpectedType[V] = type[V] | tuple[type[V], ...]


class ContinueExpectationReceiver:
    """Check vocabulary for handlers that let execution continue."""

    __slots__ = ("_handler",)

    def __init__(self, handler: ContinueExpectationHandler) -> None:
        super().__init__()
        self._handler = handler

    @property
    def handler(self) -> ContinueExpectationHandler:
        """Handler receiving this receiver's failures."""

        return self._handler

    def fail(self, message: str, cause: BaseException | None = None) -> None:
        """Report a :class:`FailedExpectationError` to the handler.

        Useful for funnelling caught errors through the framework::

            try:
                parse(payload)
            except ValueError as error:
                check.fail("payload could not be parsed", error)
        """

        dispatch_failure(
            None, self.handler.handle_fail, FailedExpectationError(message, cause)
        )

    def is_true(
        self,
        condition: bool,  # noqa: FBT001
        message: str = MESSAGE_EXPECTED_CONDITION_TRUE_BUT_FALSE,
    ) -> None:
        if not condition:
            self.fail(message)

    def is_false(
        self,
        condition: bool,  # noqa: FBT001
        message: str = MESSAGE_EXPECTED_CONDITION_FALSE_BUT_TRUE,
    ) -> None:
        if condition:
            self.fail(message)

    def is_not_none(
        self,
        value: object,
        message: str = MESSAGE_EXPECTED_VALUE_NON_NULL_BUT_NULL,
    ) -> None:
        if value is None:
            self.fail(message)

    def is_none(
        self,
        value: object,
        message: str = MESSAGE_EXPECTED_VALUE_NULL_BUT_NON_NULL,
    ) -> None:
        if value is not None:
            self.fail(message)

    def is_type(
        self,
        value: object,
        expected_type: ExpectedType[object],
        message: str = MESSAGE_EXPECTED_VALUE_OF_TYPE,
    ) -> None:
        if not isinstance(value, expected_type):
            self.fail(message)


GlobalExpectationReceiver = ContinueExpectationReceiver


class ExitExpectationReceiver[T]:
    """Check vocabulary for handlers that always leave the block on failure.

    Instances are created by :meth:`ExitExpectationHandler.run` and are only
    meaningful while the block they were created for is executing.
    """

    __slots__ = ("_handler", "_scope")

    def __init__(self, handler: ExitExpectationHandler[T], scope: BlockScope) -> None:
        super().__init__()
        self._handler = handler
        self._scope = scope

    @property
    def handler(self) -> ExitExpectationHandler[T]:
        """Handler receiving this receiver's failures."""

        return self._handler

    def fail(
        self,
        message: str = MESSAGE_EXPECTATION_FAILED,
        cause: BaseException | None = None,
    ) -> NoReturn:
        """Report a :class:`FailedExpectationError` and leave the block."""

        self.diverge(FailedExpectationError(message, cause))

    def diverge(self, exception: ExpectationError) -> NoReturn:
        """Hand ``exception`` to the handler, which must not return."""

        dispatch_failure(self._scope, self.handler.handle_fail, exception)
        msg = (
            f"{type(self.handler).__name__}.handle_fail() returned normally; "
            "exiting handlers must raise or call return_from_block()."
        )
        raise HandlerContractError(msg) from exception

    def is_true(
        self,
        condition: bool,  # noqa: FBT001
        message: str = MESSAGE_EXPECTED_CONDITION_TRUE_BUT_FALSE,
    ) -> None:
        if not condition:
            self.fail(message)

    def is_false(
        self,
        condition: bool,  # noqa: FBT001
        message: str = MESSAGE_EXPECTED_CONDITION_FALSE_BUT_TRUE,
    ) -> None:
        if condition:
            self.fail(message)

    def is_not_none[V](
        self,
        value: V | None,
        message: str = MESSAGE_EXPECTED_VALUE_NON_NULL_BUT_NULL,
    ) -> V:
        """Return ``value`` if it is not ``None``; otherwise leave the block."""

        if value is None:
            self.fail(message)
        return value

    def is_none(
        self,
        value: object,
        message: str = MESSAGE_EXPECTED_VALUE_NULL_BUT_NON_NULL,
    ) -> None:
        if value is not None:
            self.fail(message)

    def is_type[V](
        self,
        value: object,
        expected_type: ExpectedType[V],
        message: str = MESSAGE_EXPECTED_VALUE_OF_TYPE,
    ) -> V:
        """Return ``value`` typed as ``expected_type``; otherwise leave the block."""

        if not isinstance(value, expected_type):
            self.fail(message)
        return value


__all__ = [
    "ContinueExpectationReceiver",
    "ExitExpectationReceiver",
    "ExpectedType",
    "GlobalExpectationReceiver",
]
