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

"""Scope-exit signalling shared by exiting handlers and receivers.

A scoped block owns a :class:`BlockScope`. Receivers bound to the block
dispatch failures through :func:`dispatch_failure`, which marks the scope as
current while the handler runs. A handler that wants the block to yield a
substitute value calls :func:`exit_scope`; the resulting signal is tagged with
the current scope and only the runner owning that scope intercepts it.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import NoReturn, override

from .errors import ExpectationError, ExpectationScopeError

_current_scope: ContextVar[BlockScope | None] = ContextVar(
    "belay_current_scope", default=None
)


class BlockScope:
    """Identity token for one execution of a scoped block.

    ``active`` is cleared by the runner once the block finishes so receivers
    that escape their block can no longer request an exit.
    """

    __slots__ = ("active", "label")

    def __init__(self, label: str) -> None:
        super().__init__()
        self.label = label
        self.active = True

    @override
    def __repr__(self) -> str:
        state = "active" if self.active else "closed"
        return f"<BlockScope {self.label} {state} at {id(self):#x}>"


class ScopeExit(BaseException):  # noqa: N818
    """Control-transfer signal carrying the value a block should yield.

    Derives from ``BaseException`` so ``except Exception`` clauses inside user
    blocks never intercept it.
    """

    def __init__(self, scope: BlockScope, value: object) -> None:
        super().__init__(scope, value)
        self.scope = scope
        self.value = value


def current_scope() -> BlockScope | None:
    """Return the scope whose failure is being dispatched, if any."""

    return _current_scope.get()


@contextmanager
def _dispatching(scope: BlockScope | None) -> Iterator[None]:
    token = _current_scope.set(scope)
    try:
        yield
    finally:
        _current_scope.reset(token)


def dispatch_failure(
    scope: BlockScope | None,
    handle_fail: Callable[[ExpectationError], object],
    exception: ExpectationError,
) -> None:
    """Invoke ``handle_fail`` with ``scope`` marked as the exit target.

    Continuing receivers pass ``None`` so a stray exit request made while
    they dispatch cannot reach an unrelated enclosing block.
    """

    with _dispatching(scope):
        handle_fail(exception)


def exit_scope(value: object) -> NoReturn:
    """Terminate the block whose failure is being dispatched with ``value``."""

    scope = _current_scope.get()
    if scope is None:
        raise ExpectationScopeError(
            "return_from_block() may only be called while an expectation "
            "failure from a scoped block is being handled."
        )
    if not scope.active:
        raise ExpectationScopeError(
            f"{scope.label} block has already finished; its receiver can no "
            "longer exit it."
        )
    raise ScopeExit(scope, value)


__all__ = [
    "BlockScope",
    "ScopeExit",
    "current_scope",
    "dispatch_failure",
    "exit_scope",
]
