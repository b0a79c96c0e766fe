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

from __future__ import annotations

from collections.abc import Iterator

import pytest

from tests.helpers import (
    ExitHandlerFactory,
    FailureLog,
    RecordingContinueHandler,
    RecordingExitHandler,
)


@pytest.fixture
def failures() -> FailureLog:
    """Return a fresh failure log shared by the recording handlers."""

    return FailureLog()


@pytest.fixture
def continue_handler(failures: FailureLog) -> RecordingContinueHandler:
    return RecordingContinueHandler(failures)


@pytest.fixture
def exit_handler(failures: FailureLog) -> ExitHandlerFactory:
    def factory[T](return_value: T, *, name: str = "exit") -> RecordingExitHandler[T]:
        return RecordingExitHandler(failures, return_value, name=name)

    return factory


@pytest.fixture(autouse=True)
def clean_belay_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep BELAY_* variables from the outer environment out of tests."""

    for name in (
        "BELAY_ON_GLOBAL_FAIL",
        "BELAY_CATCH_EXCEPTIONS",
        "BELAY_LOG_LEVEL",
        "BELAY_LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)
    yield
