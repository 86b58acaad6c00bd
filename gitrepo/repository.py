# repository.py -- Object repository interfaces and the generic resolver
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

"""Object repository interfaces and the generic resolver.

A :class:`Repository` is anything that can open objects by id. A repository
may additionally implement :class:`Catter`, a fused operation that resolves
an object to a requested type using its own representation. :func:`cat`
prefers that operation and otherwise walks the objects itself.
"""

import io
from contextlib import closing
from typing import BinaryIO, Optional, Protocol, runtime_checkable

from .config import DEFAULT_SETTINGS, Settings
from .context import Context
from .errors import (
    ChecksumMismatch,
    DereferenceLimitExceeded,
    ObjectTypeMismatch,
    TruncatedObject,
    UnexpectedObjectType,
    UnsupportedReference,
)
from .hash import SHA1, ObjectID
from .log_utils import getLogger
from .objects import Commit, ObjectType, Prefix, Tag

logger = getLogger(__name__)


@runtime_checkable
class Repository(Protocol):
    """A source of Git objects.

    open_object returns the object's prefix and a binary stream of exactly
    ``prefix.size`` bytes. If the stream is read to its end, the bytes read
    are guaranteed to hash to the requested id.

    stat returns the same prefix without a stream. It is equivalent to
    opening the object and closing the stream immediately, but
    implementations may answer more cheaply.

    Both raise ObjectMissing if there is no such object and
    ChecksumMismatch if the stored object does not hash to its id.
    """

    def open_object(self, ctx: Context, id: ObjectID) -> tuple[Prefix, BinaryIO]: ...

    def stat(self, ctx: Context, id: ObjectID) -> Prefix: ...


@runtime_checkable
class Catter(Protocol):
    """A repository that can dereference objects to a requested type itself."""

    def cat(
        self, ctx: Context, dst: BinaryIO, want_type: ObjectType, id: ObjectID
    ) -> None: ...


class ObjectReader(io.RawIOBase):
    """A read-only stream over an object's payload.

    The reader yields exactly ``prefix.size`` bytes from ``source``,
    checking ``ctx`` before every read. If ``expected_id`` is given, the
    bytes are hashed as they are read, and the read that reaches the end
    of the payload raises ChecksumMismatch instead of returning data that
    does not match. This holds for empty payloads too. Once a mismatch
    has been seen, every later read raises it again.
    Closing the reader closes ``source``.
    """

    def __init__(
        self,
        ctx: Context,
        prefix: Prefix,
        source: BinaryIO,
        expected_id: Optional[ObjectID] = None,
    ) -> None:
        super().__init__()
        self.prefix = prefix
        self._ctx = ctx
        self._source = source
        self._remaining = prefix.size
        self._expected_id = expected_id
        self._hasher = None
        self._verified = False
        self._bad_id: Optional[ObjectID] = None
        if expected_id is not None:
            self._hasher = SHA1.new_hash()
            self._hasher.update(prefix.as_bytes())

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed object reader")
        self._ctx.check()
        if self._remaining == 0:
            self._verify()
            return 0
        if len(b) == 0:
            return 0
        data = self._source.read(min(len(b), self._remaining))
        if not data:
            raise TruncatedObject(
                self.prefix.size,
                self.prefix.size - self._remaining,
                str(self.prefix.type),
            )
        n = len(data)
        self._remaining -= n
        if self._hasher is not None:
            self._hasher.update(data)
            if self._remaining == 0:
                self._verify()
        b[:n] = data
        return n

    def _verify(self) -> None:
        if self._hasher is None or self._verified:
            return
        assert self._expected_id is not None
        if self._bad_id is None:
            got = ObjectID(self._hasher.digest())
            if got == self._expected_id:
                self._verified = True
                return
            logger.warning("object %s hashes to %s", self._expected_id, got)
            self._bad_id = got
        raise ChecksumMismatch(self._expected_id, self._bad_id)

    def close(self) -> None:
        if not self.closed:
            try:
                self._source.close()
            finally:
                super().close()


def copy_object(
    ctx: Context,
    dst: BinaryIO,
    src: BinaryIO,
    buffer_size: int = DEFAULT_SETTINGS.buffer_size,
) -> int:
    """Copy a stream to dst in chunks, checking ctx between chunks.

    Returns:
      Number of bytes copied
    """
    total = 0
    while True:
        ctx.check()
        chunk = src.read(buffer_size)
        if not chunk:
            return total
        dst.write(chunk)
        total += len(chunk)


class _RepositoryOnly:
    """Expose only the Repository methods of a repository."""

    def __init__(self, repo: Repository) -> None:
        self._repo = repo

    def open_object(self, ctx: Context, id: ObjectID) -> tuple[Prefix, BinaryIO]:
        return self._repo.open_object(ctx, id)

    def stat(self, ctx: Context, id: ObjectID) -> Prefix:
        return self._repo.stat(ctx, id)


def only_repository(repo: Repository) -> Repository:
    """Hide any methods of repo other than those of Repository.

    Passing the result to :func:`cat` forces the generic algorithm even
    if repo implements Catter.
    """
    return _RepositoryOnly(repo)


def cat(
    ctx: Context,
    repo: Repository,
    dst: BinaryIO,
    want_type: ObjectType,
    id: ObjectID,
    *,
    settings: Optional[Settings] = None,
) -> None:
    """Copy the content of an object into dst.

    If the object is not of the requested type but can be trivially
    dereferenced to it (a commit when a tree is wanted, or a tag of a
    suitable object), the referenced object is written instead.

    If repo implements Catter, its cat method is used and settings is
    ignored.

    Raises:
      ObjectMissing: if an object on the way is missing
      UnexpectedObjectType: if the object can not be dereferenced to
        want_type
      ObjectTypeMismatch: if a tag's declared type disagrees with the
        object it points to
      UnsupportedReference: if a tag points to a type that can not satisfy
        the request
      Cancelled: if ctx is cancelled
    """
    want_type = ObjectType.parse(want_type)
    if isinstance(repo, Catter):
        return repo.cat(ctx, dst, want_type, id)
    if settings is None:
        settings = DEFAULT_SETTINGS

    buf = io.BytesIO()
    next_type: Optional[ObjectType] = None
    next_id = id
    hops = 0
    while True:
        ctx.check()
        got, r = repo.open_object(ctx, next_id)
        with closing(r):
            if got.type == want_type:
                copy_object(ctx, dst, r, settings.buffer_size)
                return
            if next_type is not None and got.type != next_type:
                raise ObjectTypeMismatch(next_id, got.type, next_type)

            if got.type == ObjectType.COMMIT and want_type == ObjectType.TREE:
                copy_object(ctx, buf, r, settings.buffer_size)
                commit = Commit.from_bytes(buf.getvalue())
                logger.debug(
                    "cat %s %s: commit %s -> tree %s",
                    want_type,
                    id,
                    next_id,
                    commit.tree,
                )
                next_id = commit.tree
                next_type = ObjectType.TREE
            elif got.type == ObjectType.TAG:
                copy_object(ctx, buf, r, settings.buffer_size)
                tag = Tag.from_bytes(buf.getvalue())
                if not (
                    tag.object_type == want_type
                    or (
                        tag.object_type == ObjectType.COMMIT
                        and want_type == ObjectType.TREE
                    )
                ):
                    raise UnsupportedReference(next_id, tag.object_type, want_type)
                logger.debug(
                    "cat %s %s: tag %s -> %s %s",
                    want_type,
                    id,
                    next_id,
                    tag.object_type,
                    tag.object_id,
                )
                next_id = tag.object_id
                next_type = tag.object_type
            else:
                raise UnexpectedObjectType(next_id, got.type, want_type)
        buf.seek(0)
        buf.truncate()
        hops += 1
        if hops > settings.max_hops:
            raise DereferenceLimitExceeded(id, want_type, settings.max_hops)
