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

"""Environment driven defaults for :class:`belay.Expect`.

Values are read on every call so tests and long running processes can change
the environment without reimporting the package.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from .errors import BelayConfigError
from .handlers import Continue, ContinueExpectationHandler, Escalate, Log

ON_GLOBAL_FAIL_ENV: Final = "BELAY_ON_GLOBAL_FAIL"
CATCH_EXCEPTIONS_ENV: Final = "BELAY_CATCH_EXCEPTIONS"

_TRUTHY = frozenset({"1", "true", "on", "yes"})
_FALSY = frozenset({"", "0", "false", "off", "no"})


def _environ(env: Mapping[str, str] | None) -> Mapping[str, str]:
    return os.environ if env is None else env


def coerce_flag(value: str | None, *, name: str) -> bool:
    """Interpret an environment flag, rejecting values that are neither on nor off."""

    if value is None:
        return False
    lowered = value.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise BelayConfigError(f"{name} must be a boolean flag, got {value!r}.")


def default_global_handler(
    env: Mapping[str, str] | None = None,
) -> ContinueExpectationHandler:
    """Build the global handler selected by ``BELAY_ON_GLOBAL_FAIL``.

    ``continue`` (the default) ignores failures, ``log`` reports them through
    :class:`~belay.handlers.Log` and ``raise`` escalates them with
    :class:`~belay.handlers.Escalate`.
    """

    mode = _environ(env).get(ON_GLOBAL_FAIL_ENV, "continue").strip().lower()
    match mode:
        case "" | "continue":
            return Continue()
        case "log":
            return Log()
        case "raise":
            return Escalate()
        case _:
            raise BelayConfigError(
                f"{ON_GLOBAL_FAIL_ENV} must be one of 'continue', 'log' or "
                f"'raise', got {mode!r}."
            )


def default_catch_exceptions(env: Mapping[str, str] | None = None) -> bool:
    """Return the ``BELAY_CATCH_EXCEPTIONS`` flag (off when unset)."""

    return coerce_flag(_environ(env).get(CATCH_EXCEPTIONS_ENV), name=CATCH_EXCEPTIONS_ENV)


__all__ = [
    "CATCH_EXCEPTIONS_ENV",
    "ON_GLOBAL_FAIL_ENV",
    "coerce_flag",
    "default_catch_exceptions",
    "default_global_handler",
]
