# objects.py -- Git object types, headers and payload records
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

"""Access to base git objects.

An :class:`Object` is an immutable ``(type, data)`` pair. Its id is the SHA-1
of the serialized :class:`Prefix` (``b"blob 14\\x00"``) followed by the data.

The :class:`Tree`, :class:`Commit` and :class:`Tag` records parse and
serialize the payloads of the corresponding object types, enough to follow
the references between objects.
"""

import stat
import sys
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple, Optional, Union

from .errors import (
    InvalidObjectID,
    InvalidObjectType,
    ObjectFormatException,
    ObjectSizeError,
)
from .hash import SHA1, ObjectID, hash_chunks

# Header fields for commits
_TREE_HEADER = b"tree"
_PARENT_HEADER = b"parent"
_AUTHOR_HEADER = b"author"
_COMMITTER_HEADER = b"committer"
_ENCODING_HEADER = b"encoding"

# Header fields for tags
_OBJECT_HEADER = b"object"
_TYPE_HEADER = b"type"
_TAG_HEADER = b"tag"
_TAGGER_HEADER = b"tagger"

# Tree entry modes
MODE_PLAIN = 0o100644
MODE_EXECUTABLE = 0o100755
MODE_SYMLINK = 0o120000
MODE_GITLINK = 0o160000
MODE_DIR = 0o040000


def is_regular(mode: int) -> bool:
    """Report whether a tree entry mode names a regular file."""
    return mode in (MODE_PLAIN, MODE_EXECUTABLE)


def is_dir(mode: int) -> bool:
    """Report whether a tree entry mode names a subtree."""
    return stat.S_IFMT(mode) == stat.S_IFDIR


class ObjectType(Enum):
    """The four kinds of Git object."""

    BLOB = "blob"
    TREE = "tree"
    COMMIT = "commit"
    TAG = "tag"

    def __str__(self) -> str:
        return self.value

    @property
    def type_name(self) -> bytes:
        return self.value.encode("ascii")

    @classmethod
    def parse(cls, value: Union["ObjectType", str, bytes]) -> "ObjectType":
        """Convert a type name to an ObjectType.

        Raises:
          InvalidObjectType: if value does not name one of the four types
        """
        if isinstance(value, cls):
            return value
        name = value
        if isinstance(value, bytes):
            name = value.decode("ascii", "replace")
        if not isinstance(name, str):
            raise InvalidObjectType(value)
        try:
            return cls(name)
        except ValueError:
            raise InvalidObjectType(value)


@dataclass(frozen=True)
class Prefix:
    """The header of an object: its type and the size of its payload."""

    type: ObjectType
    size: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", ObjectType.parse(self.type))
        if isinstance(self.size, bool) or not isinstance(self.size, int):
            raise TypeError(f"object size must be an int, not {self.size!r}")
        if self.size < 0 or self.size > sys.maxsize:
            raise ObjectSizeError(str(self.type), self.size)

    def as_bytes(self) -> bytes:
        """Serialize the prefix the way it is hashed."""
        return b"%s %d\x00" % (self.type.type_name, self.size)

    @classmethod
    def from_bytes(cls, header: bytes) -> "Prefix":
        """Parse a serialized prefix such as ``b"blob 14\\x00"``."""
        if not header.endswith(b"\x00"):
            raise ObjectFormatException("object header not terminated by NUL")
        try:
            type_name, size_text = header[:-1].split(b" ", 1)
        except ValueError:
            raise ObjectFormatException(f"malformed object header {header!r}")
        if not size_text.isdigit() or (len(size_text) > 1 and size_text[0:1] == b"0"):
            raise ObjectFormatException(f"invalid object size {size_text!r}")
        return cls(ObjectType.parse(type_name), int(size_text))


@dataclass(frozen=True)
class Object:
    """An in-memory Git object."""

    type: ObjectType
    data: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", ObjectType.parse(self.type))
        object.__setattr__(self, "data", bytes(self.data))

    @property
    def prefix(self) -> Prefix:
        return Prefix(self.type, len(self.data))

    @property
    def id(self) -> ObjectID:
        """The SHA-1 of the serialized prefix followed by the data."""
        return hash_chunks([self.prefix.as_bytes(), self.data])

    def __repr__(self) -> str:
        return f"<Object {self.type} {len(self.data)} bytes>"


def _parse_id(value: bytes, what: str) -> ObjectID:
    try:
        return ObjectID.from_hex(value)
    except InvalidObjectID:
        raise ObjectFormatException(f"invalid {what} id {value!r}")


def parse_timezone(text: bytes) -> tuple[int, bool]:
    """Parse a ``+HHMM`` offset into seconds east of UTC.

    Returns:
      Tuple of the offset and whether it was written as ``-0000``
    """
    if len(text) != 5 or text[0:1] not in (b"+", b"-") or not text[1:].isdigit():
        raise ObjectFormatException(f"invalid timezone {text!r}")
    offset = int(text[1:])
    signum = -1 if text[0:1] == b"-" else 1
    hours = offset // 100
    minutes = offset % 100
    return (
        signum * (hours * 3600 + minutes * 60),
        signum < 0 and offset == 0,
    )


def format_timezone(offset: int, unnecessary_negative_timezone: bool = False) -> bytes:
    """Format an offset in seconds as ``+HHMM``.

    Args:
      offset: Seconds east of UTC
      unnecessary_negative_timezone: Write a zero offset as ``-0000``
    """
    if offset % 60 != 0:
        raise ValueError("Unable to handle non-minute offset.")
    if offset < 0 or unnecessary_negative_timezone:
        sign = "-"
    else:
        sign = "+"
    offset = abs(offset)
    return ("%c%02d%02d" % (sign, offset // 3600, (offset // 60) % 60)).encode("ascii")


def _parse_identity(value: bytes) -> tuple[str, int, int, bool]:
    try:
        person, timetext, timezonetext = value.rsplit(b" ", 2)
        when = int(timetext)
    except ValueError:
        raise ObjectFormatException(f"malformed identity {value!r}")
    timezone, neg_utc = parse_timezone(timezonetext)
    return person.decode("utf-8", "surrogateescape"), when, timezone, neg_utc


def _format_identity(
    person: str, when: int, timezone: int, neg_utc: bool = False
) -> bytes:
    return b"%s %d %s" % (
        person.encode("utf-8", "surrogateescape"),
        when,
        format_timezone(timezone, neg_utc),
    )


def _parse_message(data: bytes) -> tuple[list[tuple[bytes, bytes]], bytes]:
    """Split an object payload into its headers and message.

    Lines starting with a space continue the previous header's value.
    """
    headers: list[tuple[bytes, bytes]] = []
    pos = 0
    while pos < len(data):
        end = data.find(b"\n", pos)
        if end == -1:
            raise ObjectFormatException("headers not terminated by newline")
        line = data[pos:end]
        pos = end + 1
        if line == b"":
            return headers, data[pos:]
        if line.startswith(b" "):
            if not headers:
                raise ObjectFormatException("continuation line without header")
            name, value = headers[-1]
            headers[-1] = (name, value + b"\n" + line[1:])
            continue
        name, sep, value = line.partition(b" ")
        if not sep:
            raise ObjectFormatException(f"malformed header line {line!r}")
        headers.append((name, value))
    return headers, b""


def _format_header(name: bytes, value: bytes) -> bytes:
    return name + b" " + value.replace(b"\n", b"\n ") + b"\n"


class TreeEntry(NamedTuple):
    """Named tuple encapsulating a single tree entry."""

    name: str
    mode: int
    object_id: ObjectID

    def is_regular(self) -> bool:
        return is_regular(self.mode)

    def is_dir(self) -> bool:
        return is_dir(self.mode)


def _tree_sort_key(entry: TreeEntry) -> bytes:
    name = entry.name.encode("utf-8", "surrogateescape")
    if is_dir(entry.mode):
        name += b"/"
    return name


class Tree:
    """A Git tree: an ordered list of named entries."""

    def __init__(self, entries: Iterable[TreeEntry] = ()) -> None:
        self._entries: dict[str, TreeEntry] = {}
        for entry in entries:
            self.add(*entry)

    def add(self, name: str, mode: int, object_id: ObjectID) -> None:
        """Add or replace an entry."""
        if not name or "/" in name or "\x00" in name or name in (".", ".."):
            raise ValueError(f"invalid tree entry name {name!r}")
        self._entries[name] = TreeEntry(name, mode, object_id)

    def search(self, name: str) -> Optional[TreeEntry]:
        """Find the entry with exactly the given name."""
        return self._entries.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __getitem__(self, name: str) -> TreeEntry:
        return self._entries[name]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TreeEntry]:
        """Iterate over entries in the order they are serialized."""
        return iter(sorted(self._entries.values(), key=_tree_sort_key))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tree):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"Tree({list(self)!r})"

    @classmethod
    def from_bytes(cls, data: bytes) -> "Tree":
        """Parse a serialized tree."""
        tree = cls()
        pos = 0
        while pos < len(data):
            mode_end = data.find(b" ", pos)
            if mode_end == -1:
                raise ObjectFormatException("tree entry mode not terminated")
            mode_text = data[pos:mode_end]
            try:
                mode = int(mode_text, 8)
            except ValueError:
                raise ObjectFormatException(f"invalid tree entry mode {mode_text!r}")
            name_end = data.find(b"\x00", mode_end)
            if name_end == -1:
                raise ObjectFormatException("tree entry name not terminated")
            name = data[mode_end + 1 : name_end].decode("utf-8", "surrogateescape")
            pos = name_end + 1 + SHA1.oid_length
            if pos > len(data):
                raise ObjectFormatException(f"truncated tree entry {name!r}")
            try:
                tree.add(name, mode, ObjectID(data[name_end + 1 : pos]))
            except ValueError as e:
                raise ObjectFormatException(str(e))
        return tree

    def as_bytes(self) -> bytes:
        """Serialize the tree in Git's canonical entry order."""
        return b"".join(
            b"%o %s\x00%s"
            % (
                entry.mode,
                entry.name.encode("utf-8", "surrogateescape"),
                entry.object_id.raw,
            )
            for entry in self
        )


@dataclass
class Commit:
    """The parsed payload of a commit object."""

    tree: ObjectID
    author: str = ""
    author_time: int = 0
    author_timezone: int = 0
    committer: str = ""
    commit_time: int = 0
    commit_timezone: int = 0
    message: bytes = b""
    parents: list[ObjectID] = field(default_factory=list)
    encoding: Optional[bytes] = None
    extra: list[tuple[bytes, bytes]] = field(default_factory=list)
    author_timezone_neg_utc: bool = False
    commit_timezone_neg_utc: bool = False

    @classmethod
    def from_bytes(cls, data: bytes) -> "Commit":
        headers, message = _parse_message(data)
        tree = None
        parents = []
        author = committer = None
        encoding = None
        extra = []
        for name, value in headers:
            if name == _TREE_HEADER:
                if tree is not None:
                    raise ObjectFormatException("commit has multiple trees")
                tree = _parse_id(value, "tree")
            elif name == _PARENT_HEADER:
                parents.append(_parse_id(value, "parent"))
            elif name == _AUTHOR_HEADER:
                author = _parse_identity(value)
            elif name == _COMMITTER_HEADER:
                committer = _parse_identity(value)
            elif name == _ENCODING_HEADER:
                encoding = value
            else:
                extra.append((name, value))
        if tree is None:
            raise ObjectFormatException("commit has no tree")
        commit = cls(
            tree=tree, message=message, parents=parents, encoding=encoding, extra=extra
        )
        if author is not None:
            (
                commit.author,
                commit.author_time,
                commit.author_timezone,
                commit.author_timezone_neg_utc,
            ) = author
        if committer is not None:
            (
                commit.committer,
                commit.commit_time,
                commit.commit_timezone,
                commit.commit_timezone_neg_utc,
            ) = committer
        return commit

    def as_bytes(self) -> bytes:
        chunks = [_format_header(_TREE_HEADER, self.tree.hex().encode("ascii"))]
        for parent in self.parents:
            chunks.append(_format_header(_PARENT_HEADER, parent.hex().encode("ascii")))
        chunks.append(
            _format_header(
                _AUTHOR_HEADER,
                _format_identity(
                    self.author,
                    self.author_time,
                    self.author_timezone,
                    self.author_timezone_neg_utc,
                ),
            )
        )
        chunks.append(
            _format_header(
                _COMMITTER_HEADER,
                _format_identity(
                    self.committer,
                    self.commit_time,
                    self.commit_timezone,
                    self.commit_timezone_neg_utc,
                ),
            )
        )
        if self.encoding:
            chunks.append(_format_header(_ENCODING_HEADER, self.encoding))
        for name, value in self.extra:
            chunks.append(_format_header(name, value))
        chunks.append(b"\n")  # There must be a new line after the headers
        chunks.append(self.message)
        return b"".join(chunks)


@dataclass
class Tag:
    """The parsed payload of an annotated tag object."""

    object_id: ObjectID
    object_type: ObjectType
    name: str
    tagger: Optional[str] = None
    tag_time: int = 0
    tag_timezone: int = 0
    message: bytes = b""
    tag_timezone_neg_utc: bool = False

    @property
    def object(self) -> tuple[ObjectType, ObjectID]:
        """The type and id of the tagged object."""
        return self.object_type, self.object_id

    @classmethod
    def from_bytes(cls, data: bytes) -> "Tag":
        headers, message = _parse_message(data)
        fields: dict[bytes, bytes] = {}
        for name, value in headers:
            if name in fields:
                raise ObjectFormatException(
                    f"tag has multiple {name.decode('ascii')} headers"
                )
            fields[name] = value
        for required in (_OBJECT_HEADER, _TYPE_HEADER, _TAG_HEADER):
            if required not in fields:
                raise ObjectFormatException(
                    f"tag has no {required.decode('ascii')} header"
                )
        try:
            object_type = ObjectType.parse(fields[_TYPE_HEADER])
        except InvalidObjectType:
            raise ObjectFormatException(
                f"tag references unknown type {fields[_TYPE_HEADER]!r}"
            )
        tag = cls(
            object_id=_parse_id(fields[_OBJECT_HEADER], "object"),
            object_type=object_type,
            name=fields[_TAG_HEADER].decode("utf-8", "surrogateescape"),
            message=message,
        )
        if _TAGGER_HEADER in fields:
            (
                tag.tagger,
                tag.tag_time,
                tag.tag_timezone,
                tag.tag_timezone_neg_utc,
            ) = _parse_identity(fields[_TAGGER_HEADER])
        return tag

    def as_bytes(self) -> bytes:
        chunks = [
            _format_header(_OBJECT_HEADER, self.object_id.hex().encode("ascii")),
            _format_header(_TYPE_HEADER, self.object_type.type_name),
            _format_header(_TAG_HEADER, self.name.encode("utf-8", "surrogateescape")),
        ]
        if self.tagger is not None:
            chunks.append(
                _format_header(
                    _TAGGER_HEADER,
                    _format_identity(
                        self.tagger,
                        self.tag_time,
                        self.tag_timezone,
                        self.tag_timezone_neg_utc,
                    ),
                )
            )
        chunks.append(b"\n")  # To close headers
        chunks.append(self.message)
        return b"".join(chunks)
