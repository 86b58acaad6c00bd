# errors.py -- exception classes for gitrepo
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

"""Exception classes raised by gitrepo.

Every error raised by the library derives from :class:`GitRepoError`. Where a
builtin exception has the same meaning (a missing key, a bad value, an early
end of file) the gitrepo error also subclasses it, so callers can catch either.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .hash import ObjectID
    from .objects import ObjectType


class GitRepoError(Exception):
    """Base class for all gitrepo errors."""


class ObjectMissing(GitRepoError, KeyError):
    """Indicates that a requested object is not in the repository."""

    def __init__(self, sha: "ObjectID") -> None:
        """Initialize an ObjectMissing exception.

        Args:
            sha: The id of the missing object.
        """
        self.sha = sha
        Exception.__init__(self, f"{sha} is not in the repository")

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0])


class ChecksumMismatch(GitRepoError):
    """Stored bytes do not hash to the id they were looked up by."""

    def __init__(
        self,
        expected: "ObjectID",
        got: "ObjectID",
        extra: Optional[str] = None,
    ) -> None:
        """Initialize a ChecksumMismatch exception.

        Args:
            expected: The id the object was requested by.
            got: The id computed from the stored bytes.
            extra: Optional additional error information.
        """
        self.expected = expected
        self.got = got
        self.extra = extra
        message = f"Checksum mismatch: Expected {expected}, got {got}"
        if extra is not None:
            message += f"; {extra}"
        Exception.__init__(self, message)


class InvalidObjectID(GitRepoError, ValueError):
    """A textual or raw object id is malformed."""

    def __init__(self, value: object, reason: str) -> None:
        self.value = value
        self.reason = reason
        Exception.__init__(self, f"parse object id {value!r}: {reason}")


class InvalidObjectType(GitRepoError, ValueError):
    """An object type outside of blob, tree, commit and tag."""

    def __init__(self, value: object) -> None:
        self.value = value
        Exception.__init__(self, f"invalid object type {value!r}")


class ObjectSizeError(GitRepoError, ValueError):
    """A declared object size is negative or does not fit in memory."""

    def __init__(self, type_name: str, size: int) -> None:
        self.type_name = type_name
        self.size = size
        if size < 0:
            message = f"{type_name}: negative size {size}"
        else:
            message = f"{type_name}: too large ({size} bytes)"
        Exception.__init__(self, message)


class TruncatedObject(GitRepoError, EOFError):
    """Fewer bytes were available than the object header declared."""

    def __init__(self, expected: int, got: int, what: str = "object") -> None:
        self.expected = expected
        self.got = got
        Exception.__init__(
            self, f"{what}: unexpected end of data after {got} of {expected} bytes"
        )


class UnexpectedObjectType(GitRepoError):
    """An object can not be dereferenced to the requested type."""

    def __init__(
        self, sha: "ObjectID", got: "ObjectType", want: "ObjectType"
    ) -> None:
        """Initialize an UnexpectedObjectType exception.

        Args:
            sha: The id of the object that was found.
            got: The type of the object that was found.
            want: The type that was requested.
        """
        self.sha = sha
        self.got = got
        self.want = want
        Exception.__init__(self, f"{sha} is a {got}, not a {want}")


class ObjectTypeMismatch(GitRepoError):
    """A tag declared a different type than the object it points to."""

    def __init__(
        self, sha: "ObjectID", got: "ObjectType", expected: "ObjectType"
    ) -> None:
        self.sha = sha
        self.got = got
        self.expected = expected
        Exception.__init__(self, f"{sha} is a {got} (expected {expected})")


class UnsupportedReference(GitRepoError):
    """A tag references a type that can not satisfy the request."""

    def __init__(
        self, sha: "ObjectID", target_type: "ObjectType", want: "ObjectType"
    ) -> None:
        self.sha = sha
        self.target_type = target_type
        self.want = want
        Exception.__init__(
            self, f"tag {sha} references a {target_type}, not a {want}"
        )


class DereferenceLimitExceeded(UnsupportedReference):
    """A chain of tags was longer than the configured hop limit."""

    def __init__(self, sha: "ObjectID", want: "ObjectType", limit: int) -> None:
        self.sha = sha
        self.target_type = None
        self.want = want
        self.limit = limit
        Exception.__init__(
            self, f"cat {want} {sha}: more than {limit} dereferences"
        )


class NotesError(GitRepoError):
    """Base class for structural problems in a notes tree."""

    problem: str

    def __init__(self, path: str, commit_id: Optional["ObjectID"] = None) -> None:
        """Initialize a NotesError.

        Args:
            path: Path inside the notes tree, including the traversed
                fanout directories.
            commit_id: The commit whose notes were being read.
        """
        self.path = path
        self.commit_id = commit_id
        message = f"{path}: {self.problem}"
        if commit_id is not None:
            message = f"read notes for {commit_id}: {message}"
        Exception.__init__(self, message)


class NotARegularFile(NotesError):
    """A notes leaf is not a regular file."""

    problem = "not a regular file"


class NotADirectory(NotesError):
    """A notes fanout segment is not a directory."""

    problem = "not a directory"


class Cancelled(GitRepoError):
    """The execution context was cancelled or its deadline passed."""

    def __init__(self, reason: str = "context cancelled") -> None:
        self.reason = reason
        Exception.__init__(self, reason)


class FileFormatException(GitRepoError):
    """Base class for exceptions relating to reading git formats."""


class ObjectFormatException(FileFormatException):
    """Indicates an error parsing an object."""
