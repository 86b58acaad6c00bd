# object_store.py -- In-memory object store
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

"""In-memory object store."""

import threading
from collections.abc import Iterable, Iterator
from io import BytesIO
from typing import BinaryIO, Optional

from .config import ConfigDict, ConfigFile, Settings
from .context import Context
from .errors import ChecksumMismatch, ObjectMissing, TruncatedObject
from .hash import ObjectID
from .log_utils import getLogger
from .objects import Object, ObjectType, Prefix
from .repository import ObjectReader, cat, only_repository

logger = getLogger(__name__)


class MemoryObjectStore:
    """Object store that keeps all objects in memory.

    Objects are keyed by their own id; :meth:`add` is the only way in.
    The store implements both Repository and Catter and may be shared
    between threads.
    """

    def __init__(self, config: Optional[ConfigDict] = None) -> None:
        """Create an empty store.

        Args:
          config: Configuration to read settings from (see
            :class:`gitrepo.config.Settings`)
        """
        self.settings = Settings.from_config(config)
        self._data: dict[ObjectID, Object] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config_path(cls, path: str) -> "MemoryObjectStore":
        """Create an empty store configured from a Git-style config file."""
        return cls(ConfigFile.from_path(path))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} with {len(self)} objects>"

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, id: object) -> bool:
        with self._lock:
            return id in self._data

    def __iter__(self) -> Iterator[ObjectID]:
        """Iterate over the ids of the objects in this store."""
        with self._lock:
            return iter(list(self._data))

    def __getitem__(self, id: ObjectID) -> Object:
        """Retrieve a verified object by id.

        Raises:
          ObjectMissing: if the object is not in the store
          ChecksumMismatch: if the stored object does not hash to id
        """
        return self._get(id)

    def _get(self, id: ObjectID) -> Object:
        with self._lock:
            obj = self._data.get(id)
        if obj is None:
            raise ObjectMissing(id)
        if self.settings.verify_objects:
            got = obj.id
            if got != id:
                logger.warning("stored object %s is corrupted (hashes to %s)", id, got)
                raise ChecksumMismatch(id, got)
        return obj

    def open_object(self, ctx: Context, id: ObjectID) -> tuple[Prefix, BinaryIO]:
        """Open an object for reading.

        The returned stream is always checked against id as it is read,
        even when core.verifyObjects is off.
        """
        ctx.check()
        obj = self._get(id)
        return obj.prefix, ObjectReader(
            ctx, obj.prefix, BytesIO(obj.data), expected_id=id
        )

    def stat(self, ctx: Context, id: ObjectID) -> Prefix:
        """Return the type and size of an object."""
        ctx.check()
        return self._get(id).prefix

    def cat(
        self, ctx: Context, dst: BinaryIO, want_type: ObjectType, id: ObjectID
    ) -> None:
        """Copy the content of an object into dst, dereferencing as needed.

        See :func:`gitrepo.repository.cat`.
        """
        cat(ctx, only_repository(self), dst, want_type, id, settings=self.settings)

    def add(self, obj: Object) -> ObjectID:
        """Add an object to the store.

        Adding an object that is already present is a no-op.

        Returns:
          The id of the object
        """
        id = obj.id
        with self._lock:
            if id not in self._data:
                self._data[id] = obj
                logger.debug("added %s %s (%d bytes)", obj.type, id, len(obj.data))
        return id

    def add_objects(self, objects: Iterable[Object]) -> list[ObjectID]:
        """Add several objects, returning their ids in order."""
        return [self.add(obj) for obj in objects]

    def write_object(self, ctx: Context, prefix: Prefix, f: BinaryIO) -> ObjectID:
        """Read an object's payload from f and add it to the store.

        Exactly ``prefix.size`` bytes are read. Nothing is stored if
        reading fails.

        Raises:
          InvalidObjectType: if the prefix names an unknown type
          ObjectSizeError: if the size is negative or too large
          TruncatedObject: if f ends before prefix.size bytes
          Cancelled: if ctx is cancelled
        """
        # Validate the header before reading anything.
        prefix = Prefix(ObjectType.parse(prefix.type), prefix.size)
        buf = bytearray()
        while len(buf) < prefix.size:
            ctx.check()
            chunk = f.read(min(self.settings.buffer_size, prefix.size - len(buf)))
            if not chunk:
                raise TruncatedObject(prefix.size, len(buf), str(prefix.type))
            buf += chunk
        return self.add(Object(prefix.type, bytes(buf)))
