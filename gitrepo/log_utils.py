# log_utils.py -- Logging utilities for gitrepo
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

"""Logging setup for gitrepo.

Each module logs to ``gitrepo.<module>``: the resolver and the notes walk
record every hop at DEBUG, the memory store records additions at DEBUG and
integrity failures at WARNING. Until an application opts in, a handler on
the ``gitrepo`` logger discards all of it.

To see the records, either configure :mod:`logging` after calling
:func:`remove_null_handler`, or call :func:`default_logging_config`. The
latter looks at ``GITREPO_TRACE`` to decide whether hop-by-hop DEBUG
output is wanted and where it goes.
"""

import logging
import os
import sys
from typing import Optional, Union

getLogger = logging.getLogger

TRACE_ENV = "GITREPO_TRACE"
_TRACE_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


class _NullHandler(logging.Handler):
    """Discards gitrepo records until logging is configured."""

    def emit(self, record: logging.LogRecord) -> None:
        pass


_NULL_HANDLER = _NullHandler()
_GITREPO_LOGGER = getLogger("gitrepo")
_GITREPO_LOGGER.addHandler(_NULL_HANDLER)


def _get_trace_target() -> Optional[Union[str, int]]:
    """Decide where resolver traces go, based on GITREPO_TRACE.

    Returns:
        - None when the variable is unset, empty, "0" or "false", or is a
          relative path
        - 2 (stderr) for "1", "2" or "true"
        - the path itself when it is absolute
    """
    trace_value = os.environ.get(TRACE_ENV, "")
    if not trace_value or trace_value.lower() in ("0", "false"):
        return None
    if trace_value.lower() in ("1", "2", "true"):
        return 2
    if os.path.isabs(trace_value):
        return trace_value
    return None


def _configure_logging_from_trace() -> bool:
    """Send DEBUG records to the GITREPO_TRACE target, if there is one.

    A directory target gets one file per process. Returns True if a
    target was configured.
    """
    trace_target = _get_trace_target()
    if trace_target is None:
        return False

    if trace_target == 2:
        logging.basicConfig(
            level=logging.DEBUG, stream=sys.stderr, format=_TRACE_FORMAT
        )
        return True

    assert isinstance(trace_target, str)
    if os.path.isdir(trace_target):
        filename = os.path.join(trace_target, f"gitrepo-trace.{os.getpid()}")
    else:
        filename = trace_target
    try:
        logging.basicConfig(
            level=logging.DEBUG, filename=filename, filemode="a", format=_TRACE_FORMAT
        )
    except OSError as e:
        sys.stderr.write(f"Warning: cannot write {TRACE_ENV} file {filename}: {e}\n")
        return False
    return True


def default_logging_config() -> None:
    """Make gitrepo's log records visible.

    Without a trace target, warnings such as corrupted objects and
    disabled verification are printed to stderr at INFO level and above.
    """
    remove_null_handler()
    if not _configure_logging_from_trace():
        logging.basicConfig(
            level=logging.INFO,
            stream=sys.stderr,
            format="%(asctime)s %(levelname)s: %(message)s",
        )


def remove_null_handler() -> None:
    """Let gitrepo records reach the handlers of the root logger."""
    _GITREPO_LOGGER.removeHandler(_NULL_HANDLER)
