# __init__.py -- The gitrepo package
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

"""Content-addressed Git object repositories.

The names most callers need are importable from the package directly;
everything else lives in the submodules.
"""

__version__ = (0, 1, 0)

from .context import Context
from .errors import GitRepoError
from .hash import ObjectID
from .notes import notes_for_commit
from .object_store import MemoryObjectStore
from .objects import Object, ObjectType, Prefix
from .repository import Catter, Repository, cat

__all__ = [
    "Catter",
    "Context",
    "GitRepoError",
    "MemoryObjectStore",
    "Object",
    "ObjectID",
    "ObjectType",
    "Prefix",
    "Repository",
    "__version__",
    "cat",
    "notes_for_commit",
]
