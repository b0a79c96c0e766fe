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

"""Pluggable expectations whose failure behavior is chosen per call site."""

from __future__ import annotations

from .errors import (
    MESSAGE_EXCEPTION_OCCURRED,
    MESSAGE_EXPECTATION_FAILED,
    MESSAGE_EXPECTED_CONDITION_FALSE_BUT_TRUE,
    MESSAGE_EXPECTED_CONDITION_TRUE_BUT_FALSE,
    MESSAGE_EXPECTED_VALUE_NON_NULL_BUT_NULL,
    MESSAGE_EXPECTED_VALUE_NULL_BUT_NON_NULL,
    MESSAGE_EXPECTED_VALUE_OF_TYPE,
    BelayConfigError,
    BelayError,
    CaughtExpectationError,
    ExpectationError,
    ExpectationScopeError,
    FailedExpectationError,
    HandlerContractError,
)
from .expect import Expect
from .handlers import (
    Continue,
    ContinueExpectationHandler,
    Escalate,
    ExitExpectationHandler,
    ExpectationHandler,
    GlobalExpectationHandler,
    Log,
    Return,
    ReturnLast,
    Throw,
)
from .logging import configure_logging, get_logger
from .receivers import (
    ContinueExpectationReceiver,
    ExitExpectationReceiver,
    GlobalExpectationReceiver,
)

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
    "Continue",
    "ContinueExpectationHandler",
    "ContinueExpectationReceiver",
    "Escalate",
    "ExitExpectationHandler",
    "ExitExpectationReceiver",
    "Expect",
    "ExpectationError",
    "ExpectationHandler",
    "ExpectationScopeError",
    "FailedExpectationError",
    "GlobalExpectationHandler",
    "GlobalExpectationReceiver",
    "HandlerContractError",
    "Log",
    "Return",
    "ReturnLast",
    "Throw",
    "configure_logging",
    "get_logger",
]
