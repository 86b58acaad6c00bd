# __init__.py -- The tests for gitrepo
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

"""Tests for gitrepo."""

import os
from unittest import TestCase as _TestCase

from gitrepo.context import Context


class TestCase(_TestCase):
    """Base class for gitrepo tests.

    Isolates tests from a tracing configuration in the environment and
    provides a fresh background context as ``self.ctx``.
    """

    def setUp(self) -> None:
        super().setUp()
        self.overrideEnv("GITREPO_TRACE", None)
        self.ctx = Context.background()

    def overrideEnv(self, name: str, value: str | None) -> None:
        def restore(oldvalue: str | None) -> None:
            if oldvalue is None:
                os.environ.pop(name, None)
            else:
                os.environ[name] = oldvalue

        restore_value = os.environ.get(name)
        self.addCleanup(restore, restore_value)
        if value is not None:
            os.environ[name] = value
        else:
            os.environ.pop(name, None)
