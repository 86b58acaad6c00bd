# utils.py -- Test utilities for gitrepo
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

"""Utility functions common to gitrepo tests."""

from io import BytesIO
from typing import BinaryIO

from gitrepo.context import Context
from gitrepo.errors import ObjectMissing
from gitrepo.hash import ObjectID
from gitrepo.objects import (
    MODE_DIR,
    MODE_PLAIN,
    Commit,
    Object,
    ObjectType,
    Prefix,
    Tag,
    Tree,
)
from gitrepo.repository import ObjectReader

# 2023-12-11 14:03:00 -0800
DEFAULT_TIME = 1702332180
DEFAULT_TIMEZONE = -8 * 60 * 60


def make_commit(tree: ObjectID, **attrs) -> Commit:
    """Make a Commit with a default set of members.

    :param attrs: dict of attributes to overwrite from the default values.
    """
    all_attrs = {
        "author": "Test Author <test@nodomain.com>",
        "author_time": DEFAULT_TIME,
        "author_timezone": DEFAULT_TIMEZONE,
        "committer": "Test Committer <test@nodomain.com>",
        "commit_time": DEFAULT_TIME,
        "commit_timezone": DEFAULT_TIMEZONE,
        "message": b"Initial import\n",
    }
    all_attrs.update(attrs)
    return Commit(tree=tree, **all_attrs)


def make_tag(target: ObjectID, target_type: ObjectType, **attrs) -> Tag:
    """Make a Tag with a default set of members."""
    all_attrs = {
        "name": "v1",
        "tagger": "Test Tagger <test@nodomain.com>",
        "tag_time": DEFAULT_TIME + 180,
        "tag_timezone": DEFAULT_TIMEZONE,
        "message": b"First version\n",
    }
    all_attrs.update(attrs)
    return Tag(object_id=target, object_type=target_type, **all_attrs)


def make_tree(*entries: tuple[str, int, ObjectID]) -> Tree:
    """Make a Tree from (name, mode, id) tuples."""
    return Tree(entries)


def file_entry(name: str, id: ObjectID) -> tuple[str, int, ObjectID]:
    return (name, MODE_PLAIN, id)


def dir_entry(name: str, id: ObjectID) -> tuple[str, int, ObjectID]:
    return (name, MODE_DIR, id)


class DictRepository:
    """A Repository (but not a Catter) over a plain dict.

    Objects may be stored under any key. Nothing is checked when an object
    is opened; reading it to the end verifies it against its key.
    """

    def __init__(self) -> None:
        self.objects: dict[ObjectID, Object] = {}
        self.opened: list[ObjectID] = []
        self.readers: list[ObjectReader] = []

    def add(self, obj: Object) -> ObjectID:
        self.objects[obj.id] = obj
        return obj.id

    def open_object(self, ctx: Context, id: ObjectID) -> tuple[Prefix, BinaryIO]:
        ctx.check()
        try:
            obj = self.objects[id]
        except KeyError:
            raise ObjectMissing(id)
        self.opened.append(id)
        reader = ObjectReader(ctx, obj.prefix, BytesIO(obj.data), expected_id=id)
        self.readers.append(reader)
        return obj.prefix, reader

    def stat(self, ctx: Context, id: ObjectID) -> Prefix:
        ctx.check()
        try:
            return self.objects[id].prefix
        except KeyError:
            raise ObjectMissing(id)
