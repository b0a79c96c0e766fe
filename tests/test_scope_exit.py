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

"""Tests for scope exits out of scoped expectation blocks."""

from __future__ import annotations

import logging
from typing import NoReturn, override

import pytest

from belay import (
    MESSAGE_EXCEPTION_OCCURRED,
    CaughtExpectationError,
    ExitExpectationHandler,
    ExitExpectationReceiver,
    ExpectationError,
    ExpectationScopeError,
    FailedExpectationError,
    HandlerContractError,
    Return,
    ReturnLast,
    Throw,
)
from belay._scope import current_scope
from tests.helpers import ExitHandlerFactory, FailureLog, FallThroughExitHandler

pytestmark = pytest.mark.core


def test_block_result_is_returned_when_nothing_fails(
    exit_handler: ExitHandlerFactory, failures: FailureLog
) -> None:
    runs: list[int] = []

    def block(check: ExitExpectationReceiver[str]) -> str:
        runs.append(1)
        return "success"

    assert exit_handler("error").run(block) == "success"
    assert runs == [1]
    failures.assert_no_failures()


def test_nested_blocks_exit_only_the_owning_block() -> None:
    outer_steps: list[str] = []

    def inner(check: ExitExpectationReceiver[str]) -> str:
        check.is_true(False)
        return "inner success"  # pragma: no cover

    def outer(check: ExitExpectationReceiver[str]) -> str:
        inner_result = Return("inner fallback").run(inner)
        outer_steps.append(inner_result)
        return "outer success"

    assert Return("outer fallback").run(outer) == "outer success"
    assert outer_steps == ["inner fallback"]


def test_outer_receiver_used_inside_inner_block_exits_outer_block() -> None:
    inner_steps: list[str] = []

    def outer(outer_check: ExitExpectationReceiver[str]) -> str:
        def inner(check: ExitExpectationReceiver[str]) -> str:
            inner_steps.append("start")
            outer_check.is_true(False)
            inner_steps.append("after")  # pragma: no cover
            return "inner"  # pragma: no cover

        Return("inner fallback").run(inner)
        return "outer success"  # pragma: no cover

    assert Return("outer fallback").run(outer) == "outer fallback"
    assert inner_steps == ["start"]


def test_nested_blocks_sharing_one_handler_are_distinguished() -> None:
    handler = Return("fallback")
    seen: list[str] = []

    def inner(check: ExitExpectationReceiver[str]) -> str:
        check.is_true(False)
        return "inner"  # pragma: no cover

    def outer(check: ExitExpectationReceiver[str]) -> str:
        seen.append(handler.run(inner))
        return "outer"

    assert handler.run(outer) == "outer"
    assert seen == ["fallback"]


def test_scope_exit_is_not_caught_by_except_exception() -> None:
    swallowed: list[Exception] = []

    def block(check: ExitExpectationReceiver[str]) -> str:
        try:
            check.is_true(False)
        except Exception as error:  # noqa: BLE001  # pragma: no cover
            swallowed.append(error)
        return "success"  # pragma: no cover

    assert Return("fallback").run(block) == "fallback"
    assert swallowed == []


def test_finally_clauses_run_on_scope_exit() -> None:
    cleaned: list[bool] = []

    def block(check: ExitExpectationReceiver[str]) -> str:
        try:
            check.fail()
        finally:
            cleaned.append(True)

    assert Return("fallback").run(block) == "fallback"
    assert cleaned == [True]


def test_return_from_block_outside_a_block_is_rejected() -> None:
    with pytest.raises(ExpectationScopeError):
        Return("value").handle_fail(FailedExpectationError("direct"))


def test_escaped_receiver_cannot_exit_finished_block() -> None:
    escaped: list[ExitExpectationReceiver[str]] = []

    def block(check: ExitExpectationReceiver[str]) -> str:
        escaped.append(check)
        return "success"

    assert Return("fallback").run(block) == "success"
    with pytest.raises(ExpectationScopeError, match="already finished"):
        escaped[0].fail()


def test_current_scope_is_only_set_while_dispatching() -> None:
    observed: list[object] = []

    class Observe(ExitExpectationHandler[str]):
        @override
        def handle_fail(self, exception: ExpectationError) -> NoReturn:
            observed.append(current_scope())
            self.return_from_block("observed")

    assert current_scope() is None
    assert Observe().run(lambda check: check.fail()) == "observed"
    assert observed[0] is not None
    assert current_scope() is None


def test_errors_propagate_when_not_catching_exceptions(
    exit_handler: ExitHandlerFactory, failures: FailureLog
) -> None:
    def block(check: ExitExpectationReceiver[str]) -> str:
        raise KeyError("boom")

    with pytest.raises(KeyError):
        exit_handler("error").run(block)
    failures.assert_no_failures()


def test_caught_exceptions_are_handled_as_failures(
    exit_handler: ExitHandlerFactory, failures: FailureLog
) -> None:
    boom = KeyError("boom")

    def block(check: ExitExpectationReceiver[str]) -> str:
        raise boom

    assert exit_handler("error").run(block, catch_exceptions=True) == "error"
    failures.assert_failed_with(CaughtExpectationError, MESSAGE_EXCEPTION_OCCURRED, boom)


def test_catching_exceptions_does_not_reclassify_scope_exits(
    exit_handler: ExitHandlerFactory, failures: FailureLog
) -> None:
    def block(check: ExitExpectationReceiver[str]) -> str:
        check.is_true(False, "explicit")
        return "success"  # pragma: no cover

    assert exit_handler("error").run(block, catch_exceptions=True) == "error"
    failures.assert_failed_with(FailedExpectationError, "explicit")


def test_base_exceptions_are_never_caught() -> None:
    def block(check: ExitExpectationReceiver[str]) -> str:
        raise KeyboardInterrupt

    with pytest.raises(KeyboardInterrupt):
        Return("fallback").run(block, catch_exceptions=True)


def test_caught_exceptions_update_return_last() -> None:
    handler = ReturnLast(0)
    handler.run(lambda check: 7)

    def block(check: ExitExpectationReceiver[int]) -> int:
        return 1 // 0

    assert handler.run(block, catch_exceptions=True) == 7


def test_throw_with_caught_exceptions_raises_caught_error() -> None:
    def block(check: ExitExpectationReceiver[str]) -> str:
        raise ValueError("bad")

    with pytest.raises(CaughtExpectationError) as exc:
        Throw[str]().run(block, catch_exceptions=True)

    assert isinstance(exc.value.cause, ValueError)


def test_throw_failure_is_reclassified_when_catching_exceptions() -> None:
    with pytest.raises(CaughtExpectationError) as exc:
        Throw[str]().run(lambda check: check.fail("inner"), catch_exceptions=True)

    assert isinstance(exc.value.cause, FailedExpectationError)
    assert exc.value.cause.message == "inner"


def test_contract_errors_are_not_reclassified_when_catching_exceptions(
    failures: FailureLog,
) -> None:
    handler = FallThroughExitHandler(failures)

    with pytest.raises(HandlerContractError) as exc:
        handler.run(lambda check: check.fail("boom"), catch_exceptions=True)

    assert failures.calls == ["fall-through"]
    failures.assert_failed_with(FailedExpectationError, "boom")
    assert isinstance(exc.value.__cause__, FailedExpectationError)


def test_scope_errors_are_not_reclassified_when_catching_exceptions(
    exit_handler: ExitHandlerFactory, failures: FailureLog
) -> None:
    escaped: list[ExitExpectationReceiver[str]] = []

    def first(check: ExitExpectationReceiver[str]) -> str:
        escaped.append(check)
        return "first"

    def second(check: ExitExpectationReceiver[str]) -> str:
        escaped[0].fail("stale")
        return "unreachable"  # pragma: no cover

    handler = exit_handler("error")
    handler.run(first)

    with pytest.raises(ExpectationScopeError, match="already finished"):
        handler.run(second, catch_exceptions=True)

    assert failures.calls == ["exit"]


def test_callback_errors_during_caught_exception_path_propagate() -> None:
    def explode(error: ExpectationError) -> None:
        raise RuntimeError("callback failed")

    def block(check: ExitExpectationReceiver[str]) -> str:
        raise ValueError("bad")

    with pytest.raises(RuntimeError, match="callback failed"):
        Return("fallback", explode).run(block, catch_exceptions=True)


def test_early_exit_and_caught_exceptions_are_logged_at_debug(
    caplog: pytest.LogCaptureFixture,
) -> None:
    def block(check: ExitExpectationReceiver[str]) -> str:
        raise ValueError("bad")

    with caplog.at_level(logging.DEBUG, logger="belay.handlers"):
        Return("fallback").run(block, catch_exceptions=True)

    events = [getattr(record, "event", None) for record in caplog.records]
    assert events == ["belay.block.caught", "belay.block.exited"]
    assert getattr(caplog.records[1], "context") == {"handler": "Return"}
