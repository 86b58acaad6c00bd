# hash.py -- Object ids and the hash algorithm behind them
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

"""Object ids.

An object is named by the SHA-1 digest of its serialized header and payload.
:class:`ObjectID` is the value type for such a digest; :data:`SHA1` describes
the algorithm that produces it.
"""

import binascii
import functools
from collections.abc import Callable
from hashlib import sha1
from typing import Union

from .errors import InvalidObjectID


class HashAlgorithm:
    """A hash algorithm used to name objects."""

    def __init__(
        self, name: str, oid_length: int, hex_length: int, hash_func: Callable
    ) -> None:
        """Initialize a hash algorithm.

        Args:
            name: Name of the algorithm (e.g., "sha1")
            oid_length: Length of the binary object ID in bytes
            hex_length: Length of the hexadecimal object ID in characters
            hash_func: Hash function from hashlib
        """
        self.name = name
        self.oid_length = oid_length
        self.hex_length = hex_length
        self.hash_func = hash_func

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"HashAlgorithm({self.name!r})"

    def new_hash(self):
        """Create a new hash object."""
        return self.hash_func()


SHA1 = HashAlgorithm("sha1", 20, 40, sha1)


@functools.total_ordering
class ObjectID:
    """The SHA-1 digest naming a Git object.

    Instances are immutable and compare bytewise. ``str()`` gives the
    canonical 40 character lowercase hex form.
    """

    __slots__ = ("_raw",)

    _raw: bytes

    def __init__(self, raw: bytes) -> None:
        if not isinstance(raw, bytes) or len(raw) != SHA1.oid_length:
            raise InvalidObjectID(raw, f"want {SHA1.oid_length} raw bytes")
        object.__setattr__(self, "_raw", raw)

    @classmethod
    def from_raw(cls, raw: bytes) -> "ObjectID":
        """Create an id from its binary digest."""
        return cls(bytes(raw))

    @classmethod
    def from_hex(cls, hexsha: Union[str, bytes]) -> "ObjectID":
        """Parse a hex-encoded id.

        Upper and lower case digits are both accepted.

        Raises:
          InvalidObjectID: if the text is not exactly 40 hex digits
        """
        if isinstance(hexsha, str):
            try:
                data = hexsha.encode("ascii")
            except UnicodeEncodeError:
                raise InvalidObjectID(hexsha, "not hexadecimal")
        elif isinstance(hexsha, bytes):
            data = hexsha
        else:
            raise InvalidObjectID(hexsha, "not a string")
        if len(data) != SHA1.hex_length:
            raise InvalidObjectID(hexsha, "wrong size")
        try:
            return cls(binascii.unhexlify(data))
        except binascii.Error:
            raise InvalidObjectID(hexsha, "not hexadecimal")

    @classmethod
    def zero(cls) -> "ObjectID":
        """Return the all-zero id, which never names a real object."""
        return cls(b"\x00" * SHA1.oid_length)

    @property
    def raw(self) -> bytes:
        return self._raw

    def hex(self) -> str:
        return binascii.hexlify(self._raw).decode("ascii")

    def short(self) -> str:
        """Return the first 4 bytes of the id as hex."""
        return binascii.hexlify(self._raw[:4]).decode("ascii")

    def is_zero(self) -> bool:
        return not any(self._raw)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("ObjectID is immutable")

    def __bytes__(self) -> bytes:
        return self._raw

    def __str__(self) -> str:
        return self.hex()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.hex()!r})"

    def __hash__(self) -> int:
        return hash(self._raw)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ObjectID):
            return NotImplemented
        return self._raw == other._raw

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ObjectID):
            return NotImplemented
        return self._raw < other._raw

    def __reduce__(self):
        return (self.__class__, (self._raw,))


def hash_chunks(chunks) -> ObjectID:
    """Hash a sequence of byte strings into an object id."""
    h = SHA1.new_hash()
    for chunk in chunks:
        h.update(chunk)
    return ObjectID(h.digest())
