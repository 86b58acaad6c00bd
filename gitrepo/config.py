# config.py -- Reading and representing gitrepo configuration
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

"""Reading and representing configuration.

Configuration uses Git's syntax::

    [cat]
        maxHops = 32
        bufferSize = 8192
    [core]
        verifyObjects = true

Section and variable names are case insensitive. :class:`Settings` is the
validated, immutable view of a configuration that the resolver and the
memory store consume.
"""

import sys
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import IO, Optional, Union

from .log_utils import getLogger

logger = getLogger(__name__)

Section = tuple[bytes, ...]
Name = bytes
Value = bytes
SectionLike = Union[bytes, str, tuple[Union[bytes, str], ...]]
NameLike = Union[bytes, str]
ValueLike = Union[bytes, str, bool, int]

DEFAULT_MAX_HOPS = 64
DEFAULT_BUFFER_SIZE = 64 * 1024


def lower_key(key: Union[bytes, Section]) -> Union[bytes, Section]:
    """Lowercase a section or variable name for comparison.

    Subsection names are case sensitive, so only the first element of a
    section tuple is folded.
    """
    if isinstance(key, bytes):
        return key.lower()
    return (key[0].lower(),) + tuple(key[1:])


class ConfigDict:
    """Configuration stored in a dictionary."""

    def __init__(self, encoding: Optional[str] = None) -> None:
        if encoding is None:
            encoding = sys.getdefaultencoding()
        self.encoding = encoding
        # {lowered section: (section, {lowered name: (name, value)})}
        self._values: dict[Section, tuple[Section, dict[Name, tuple[Name, Value]]]] = {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({dict(self._iter_values())!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ConfigDict) and dict(self._iter_values()) == dict(
            other._iter_values()
        )

    def __len__(self) -> int:
        return len(self._values)

    def _iter_values(self) -> Iterator[tuple[tuple[Section, Name], Value]]:
        for section, names in self._values.values():
            for name, value in names.values():
                yield (lower_key(section), name.lower()), value

    def _check_section_and_name(
        self, section: SectionLike, name: NameLike
    ) -> tuple[Section, Name]:
        if not isinstance(section, tuple):
            section = (section,)
        checked_section = tuple(
            subsection.encode(self.encoding)
            if not isinstance(subsection, bytes)
            else subsection
            for subsection in section
        )
        if not isinstance(name, bytes):
            name = name.encode(self.encoding)
        return checked_section, name

    def get(self, section: SectionLike, name: NameLike) -> Value:
        """Get a configuration value.

        Args:
            section: Section name, or tuple of section and subsection
            name: Setting name

        Returns:
            Configuration value

        Raises:
            KeyError: if the value is not set
        """
        section, name = self._check_section_and_name(section, name)
        _, names = self._values[lower_key(section)]
        return names[name.lower()][1]

    def get_boolean(
        self, section: SectionLike, name: NameLike, default: Optional[bool] = None
    ) -> Optional[bool]:
        """Retrieve a configuration setting as boolean."""
        try:
            value = self.get(section, name)
        except KeyError:
            return default
        if value.lower() in (b"true", b"yes", b"on", b"1"):
            return True
        elif value.lower() in (b"false", b"no", b"off", b"0", b""):
            return False
        raise ValueError(f"not a valid boolean string: {value!r}")

    def get_int(
        self, section: SectionLike, name: NameLike, default: Optional[int] = None
    ) -> Optional[int]:
        """Retrieve a configuration setting as an integer.

        Git's ``k``, ``m`` and ``g`` suffixes are understood.
        """
        try:
            value = self.get(section, name)
        except KeyError:
            return default
        multiplier = 1
        suffix = value[-1:].lower()
        if suffix in (b"k", b"m", b"g"):
            multiplier = {b"k": 1024, b"m": 1024**2, b"g": 1024**3}[suffix]
            value = value[:-1]
        try:
            return int(value) * multiplier
        except ValueError:
            raise ValueError(f"not a valid integer: {value!r}")

    def set(self, section: SectionLike, name: NameLike, value: ValueLike) -> None:
        """Set a configuration value."""
        section, name = self._check_section_and_name(section, name)
        if isinstance(value, bool):
            value = b"true" if value else b"false"
        elif isinstance(value, int):
            value = str(value).encode("ascii")
        elif not isinstance(value, bytes):
            value = value.encode(self.encoding)
        _, names = self._values.setdefault(lower_key(section), (section, {}))
        names[name.lower()] = (name, value)

    def items(self, section: SectionLike) -> Iterator[tuple[Name, Value]]:
        """Iterate over the (name, value) pairs of a section."""
        checked, _ = self._check_section_and_name(section, b"")
        entry = self._values.get(lower_key(checked))
        if entry is None:
            return iter([])
        return iter(entry[1].values())

    def sections(self) -> Iterator[Section]:
        return iter(section for section, _ in self._values.values())

    def has_section(self, name: SectionLike) -> bool:
        checked, _ = self._check_section_and_name(name, b"")
        return lower_key(checked) in self._values

    @classmethod
    def from_mapping(cls, values: Mapping[str, ValueLike]) -> "ConfigDict":
        """Build a configuration from dotted keys such as ``"cat.maxHops"``."""
        ret = cls()
        for key, value in values.items():
            parts = key.split(".")
            if len(parts) < 2:
                raise ValueError(f"config key {key!r} has no section")
            section: tuple[str, ...] = (parts[0],)
            if len(parts) > 2:
                section += (".".join(parts[1:-1]),)
            ret.set(section, parts[-1], value)
        return ret


def _parse_section_header(line: bytes) -> Section:
    if not line.endswith(b"]"):
        raise ValueError(f"invalid section header {line!r}")
    header = line[1:-1].strip()
    name, sep, subsection = header.partition(b" ")
    if not sep:
        return (name,)
    subsection = subsection.strip()
    if len(subsection) < 2 or subsection[:1] != b'"' or subsection[-1:] != b'"':
        raise ValueError(f"invalid subsection in {line!r}")
    return (name, subsection[1:-1].replace(b'\\"', b'"').replace(b"\\\\", b"\\"))


def _strip_comments(line: bytes) -> bytes:
    in_quotes = False
    for i, c in enumerate(line):
        if c == ord('"'):
            in_quotes = not in_quotes
        elif c in (ord("#"), ord(";")) and not in_quotes:
            return line[:i]
    return line


class ConfigFile(ConfigDict):
    """A configuration read from a Git-style config file."""

    @classmethod
    def from_file(cls, f: IO[bytes]) -> "ConfigFile":
        """Read configuration from a binary file-like object."""
        ret = cls()
        section: Optional[Section] = None
        for lineno, raw in enumerate(f, 1):
            line = _strip_comments(raw.rstrip(b"\r\n")).strip()
            if not line:
                continue
            if line.startswith(b"["):
                try:
                    section = _parse_section_header(line)
                except ValueError as e:
                    raise ValueError(f"line {lineno}: {e}")
                continue
            if section is None:
                raise ValueError(f"line {lineno}: setting outside of a section")
            name, sep, value = line.partition(b"=")
            name = name.strip()
            if not name.replace(b"-", b"").isalnum():
                raise ValueError(f"line {lineno}: invalid variable name {name!r}")
            if not sep:
                # A bare variable name is a true boolean.
                ret.set(section, name, True)
                continue
            value = value.strip()
            if len(value) >= 2 and value[:1] == b'"' and value[-1:] == b'"':
                value = value[1:-1]
            ret.set(section, name, value)
        return ret

    @classmethod
    def from_path(cls, path: str) -> "ConfigFile":
        """Read configuration from a file on disk."""
        with open(path, "rb") as f:
            return cls.from_file(f)


@dataclass(frozen=True)
class Settings:
    """Validated settings for resolving and storing objects."""

    max_hops: int = DEFAULT_MAX_HOPS
    buffer_size: int = DEFAULT_BUFFER_SIZE
    verify_objects: bool = True

    def __post_init__(self) -> None:
        if self.max_hops < 1:
            raise ValueError(f"cat.maxHops must be positive, not {self.max_hops}")
        if self.buffer_size < 1:
            raise ValueError(f"cat.bufferSize must be positive, not {self.buffer_size}")

    @classmethod
    def from_config(cls, config: Optional[ConfigDict]) -> "Settings":
        """Read settings from a configuration, using defaults for unset keys."""
        if config is None:
            return cls()
        try:
            max_hops = config.get_int("cat", "maxHops", DEFAULT_MAX_HOPS)
        except ValueError as e:
            raise ValueError(f"cat.maxHops: {e}")
        try:
            buffer_size = config.get_int("cat", "bufferSize", DEFAULT_BUFFER_SIZE)
        except ValueError as e:
            raise ValueError(f"cat.bufferSize: {e}")
        try:
            verify = config.get_boolean("core", "verifyObjects", True)
        except ValueError as e:
            raise ValueError(f"core.verifyObjects: {e}")
        assert max_hops is not None and buffer_size is not None and verify is not None
        if not verify:
            logger.warning(
                "core.verifyObjects is off; objects are checked only when read fully"
            )
        return cls(max_hops=max_hops, buffer_size=buffer_size, verify_objects=verify)

    @classmethod
    def from_path(cls, path: str) -> "Settings":
        """Read settings from a Git-style config file."""
        return cls.from_config(ConfigFile.from_path(path))


DEFAULT_SETTINGS = Settings()
