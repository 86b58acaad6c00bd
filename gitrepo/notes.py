# notes.py -- Reading Git notes
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

"""Reading Git notes.

A notes tree maps the hex id of an annotated object to a blob. Large notes
trees use a fanout layout: the first hex digits are split off into
directories two characters at a time, so the note for ``af3ab0b8...`` may
live at ``af3ab0b8...``, ``af/3ab0b8...``, ``af/3a/b0b8...`` and so on.
"""

from io import BytesIO
from typing import BinaryIO

from .context import Context
from .errors import NotADirectory, NotARegularFile
from .hash import ObjectID
from .log_utils import getLogger
from .objects import ObjectType, Tree
from .repository import Repository, cat

logger = getLogger(__name__)


def split_path_for_fanout(hexsha: str, fanout_level: int) -> tuple[str, ...]:
    """Split a hex id into path components based on fanout level.

    Args:
        hexsha: Hex id of the object
        fanout_level: Number of directory levels for fanout

    Returns:
        Tuple of path components
    """
    components = [hexsha[i * 2 : (i + 1) * 2] for i in range(fanout_level)]
    components.append(hexsha[fanout_level * 2 :])
    return tuple(components)


def get_note_path(object_id: ObjectID, fanout_level: int = 0) -> str:
    """Get the path within a notes tree for a given object."""
    return "/".join(split_path_for_fanout(object_id.hex(), fanout_level))


def notes_for_commit(
    ctx: Context,
    repo: Repository,
    dst: BinaryIO,
    notes_root: ObjectID,
    commit_id: ObjectID,
) -> None:
    """Read the notes for a commit into dst.

    notes_root may be a tree or anything that dereferences to one (usually
    the commit a notes ref points to). If there are no notes for the
    commit, nothing is written to dst.

    Raises:
      NotARegularFile: if the note entry is not a regular file
      NotADirectory: if a fanout entry is not a directory
    """
    buf = BytesIO()
    prefix = ""
    rest = commit_id.hex()
    curr = notes_root
    while rest:
        cat(ctx, repo, buf, ObjectType.TREE, curr)
        tree = Tree.from_bytes(buf.getvalue())
        buf.seek(0)
        buf.truncate()

        ent = tree.search(rest)
        if ent is not None:
            if not ent.is_regular():
                raise NotARegularFile(prefix + rest, commit_id)
            logger.debug("notes for %s found at %s%s", commit_id, prefix, rest)
            cat(ctx, repo, dst, ObjectType.BLOB, ent.object_id)
            return

        segment, rest = rest[:2], rest[2:]
        ent = tree.search(segment)
        if ent is None:
            break
        if not ent.is_dir():
            raise NotADirectory(prefix + segment, commit_id)
        prefix += segment + "/"
        curr = ent.object_id
    logger.debug("no notes for %s", commit_id)
