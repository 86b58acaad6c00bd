# context.py -- Cancellation and deadlines for repository calls
# Copyright (C) 2025 The gitrepo contributors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# gitrepo is dual-licensed under the Apache License, Version 2.0 and the GNU
# General Public License as published by the Free Software Foundation; version 2.0
# or (at your option) any later version. You can redistribute it and/or
# modify it under the terms of either of these two licenses.
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# You should have received a copy of the licenses; if not, see
# <http://www.gnu.org/licenses/> for a copy of the GNU General Public License
# and <http://www.apache.org/licenses/LICENSE-2.0> for a copy of the Apache
# License, Version 2.0.
#

"""Execution contexts.

Every repository call takes a :class:`Context` as its first argument. Long
running operations call :meth:`Context.check` between units of work, which
raises :class:`~gitrepo.errors.Cancelled` once the context (or any context it
was derived from) has been cancelled or its deadline has passed.

    with Context.background().with_timeout(5) as ctx:
        cat(ctx, repo, out, ObjectType.TREE, commit_id)
"""

import threading
import time
from typing import Optional

from .errors import Cancelled

DEADLINE_EXCEEDED = "context deadline exceeded"
CANCELLED = "context cancelled"


class Context:
    """A cancellation signal with an optional deadline.

    Contexts form a tree: cancelling a context cancels every context derived
    from it, and a derived context never outlives its parent's deadline.
    Contexts may be cancelled from any thread.
    """

    def __init__(
        self, parent: Optional["Context"] = None, deadline: Optional[float] = None
    ) -> None:
        """Create a context.

        Args:
          parent: Context to derive from, or None for a root context.
          deadline: Absolute time.monotonic() value after which the context
            counts as cancelled.
        """
        self._parent = parent
        if parent is not None and parent.deadline is not None:
            if deadline is None or parent.deadline < deadline:
                deadline = parent.deadline
        self._deadline = deadline
        self._done = threading.Event()
        self._lock = threading.Lock()
        self._reason: Optional[str] = None

    @classmethod
    def background(cls) -> "Context":
        """Return a root context that is never cancelled on its own."""
        return cls()

    def with_cancel(self) -> "Context":
        """Derive a child that can be cancelled independently."""
        return Context(self)

    def with_timeout(self, seconds: float) -> "Context":
        """Derive a child that is cancelled after the given number of seconds."""
        return Context(self, time.monotonic() + seconds)

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    def cancel(self, reason: str = CANCELLED) -> None:
        """Cancel this context and everything derived from it."""
        with self._lock:
            if not self._done.is_set():
                self._reason = reason
                self._done.set()

    def reason(self) -> Optional[str]:
        """Return why the context is done, or None if it is still live."""
        ctx: Optional[Context] = self
        while ctx is not None:
            if ctx._done.is_set():
                return ctx._reason
            ctx = ctx._parent
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return DEADLINE_EXCEEDED
        return None

    @property
    def cancelled(self) -> bool:
        return self.reason() is not None

    def check(self) -> None:
        """Raise Cancelled if the context is done."""
        reason = self.reason()
        if reason is not None:
            raise Cancelled(reason)

    def __enter__(self) -> "Context":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.cancel()

    def __repr__(self) -> str:
        state = self.reason() or "live"
        return f"<{self.__class__.__name__} {state}>"
