# test_repository.py -- Tests for the generic resolver
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

"""Tests for gitrepo.repository."""

from io import BytesIO

from gitrepo.config import Settings
from gitrepo.context import Context
from gitrepo.errors import (
    Cancelled,
    ChecksumMismatch,
    DereferenceLimitExceeded,
    GitRepoError,
    InvalidObjectType,
    ObjectMissing,
    ObjectTypeMismatch,
    TruncatedObject,
    UnexpectedObjectType,
    UnsupportedReference,
)
from gitrepo.hash import ObjectID
from gitrepo.objects import Object, ObjectType, Prefix
from gitrepo.repository import (
    Catter,
    ObjectReader,
    Repository,
    cat,
    copy_object,
    only_repository,
)

from . import TestCase
from .utils import DictRepository, file_entry, make_commit, make_tag, make_tree

HELLO = b"Hello, World!\n"
HELLO_ID = ObjectID.from_hex("8ab686eafeb1f44702738c8b0f24f2567c36da6d")
EMPTY_BLOB_ID = ObjectID.from_hex("e69de29bb2d1d6434b8b29ae775ad8c2e48c5391")


class CancellingWriter(BytesIO):
    """Cancels a context on the first write."""

    def __init__(self, ctx: Context) -> None:
        super().__init__()
        self._ctx = ctx

    def write(self, data) -> int:
        n = super().write(data)
        self._ctx.cancel()
        return n


class RecordingCatter(DictRepository):
    """A repository with a fused cat that records its calls."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[tuple[ObjectType, ObjectID]] = []

    def cat(self, ctx, dst, want_type, id) -> None:
        self.calls.append((want_type, id))
        dst.write(b"fused")


class ObjectGraphMixin:
    """Builds Blob <- Tree <- Commit <- Tag in self.repo."""

    def build_graph(self) -> None:
        self.blob_id = self.repo.add(Object(ObjectType.BLOB, HELLO))
        self.tree_data = make_tree(file_entry("hello.txt", self.blob_id)).as_bytes()
        self.tree_id = self.repo.add(Object(ObjectType.TREE, self.tree_data))
        self.commit_data = make_commit(self.tree_id).as_bytes()
        self.commit_id = self.repo.add(Object(ObjectType.COMMIT, self.commit_data))
        self.bad_commit_data = make_commit(self.blob_id).as_bytes()
        self.bad_commit_id = self.repo.add(
            Object(ObjectType.COMMIT, self.bad_commit_data)
        )
        self.tag_data = make_tag(self.commit_id, ObjectType.COMMIT).as_bytes()
        self.tag_id = self.repo.add(Object(ObjectType.TAG, self.tag_data))

    def expected_matrix(self):
        return [
            ("blob", self.blob_id, {ObjectType.BLOB: HELLO}),
            ("tree", self.tree_id, {ObjectType.TREE: self.tree_data}),
            (
                "commit",
                self.commit_id,
                {ObjectType.TREE: self.tree_data, ObjectType.COMMIT: self.commit_data},
            ),
            (
                "tag",
                self.tag_id,
                {
                    ObjectType.TREE: self.tree_data,
                    ObjectType.COMMIT: self.commit_data,
                    ObjectType.TAG: self.tag_data,
                },
            ),
            (
                "bad commit",
                self.bad_commit_id,
                {ObjectType.COMMIT: self.bad_commit_data},
            ),
            ("zero id", ObjectID.zero(), {}),
        ]


class CatTests(ObjectGraphMixin, TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.repo = DictRepository()
        self.build_graph()

    def _cat(self, want_type, id, **kwargs) -> bytes:
        out = BytesIO()
        cat(self.ctx, self.repo, out, want_type, id, **kwargs)
        return out.getvalue()

    def test_matrix(self) -> None:
        for name, id, want in self.expected_matrix():
            for tp in ObjectType:
                with self.subTest(name=name, type=tp):
                    if tp in want:
                        self.assertEqual(want[tp], self._cat(tp, id))
                    else:
                        self.assertRaises(GitRepoError, self._cat, tp, id)

    def test_hello_world_blob(self) -> None:
        self.assertEqual(HELLO_ID, self.blob_id)
        self.assertEqual(HELLO, self._cat(ObjectType.BLOB, HELLO_ID))

    def test_blob_as_tree(self) -> None:
        with self.assertRaises(UnexpectedObjectType) as cm:
            self._cat(ObjectType.TREE, self.blob_id)
        self.assertEqual(self.blob_id, cm.exception.sha)
        self.assertEqual(ObjectType.BLOB, cm.exception.got)
        self.assertEqual(ObjectType.TREE, cm.exception.want)

    def test_tree_as_blob(self) -> None:
        self.assertRaises(
            UnexpectedObjectType, self._cat, ObjectType.BLOB, self.tree_id
        )

    def test_commit_as_tree_opens_two_objects(self) -> None:
        self.assertEqual(self.tree_data, self._cat(ObjectType.TREE, self.commit_id))
        self.assertEqual([self.commit_id, self.tree_id], self.repo.opened)

    def test_tag_as_tree(self) -> None:
        self.assertEqual(self.tree_data, self._cat(ObjectType.TREE, self.tag_id))
        self.assertEqual([self.tag_id, self.commit_id, self.tree_id], self.repo.opened)

    def test_type_name_string(self) -> None:
        self.assertEqual(self.tree_data, self._cat("tree", self.tag_id))
        self.assertRaises(InvalidObjectType, self._cat, "bogus", self.tag_id)

    def test_commit_pointing_at_blob(self) -> None:
        with self.assertRaises(ObjectTypeMismatch) as cm:
            self._cat(ObjectType.TREE, self.bad_commit_id)
        self.assertEqual(self.blob_id, cm.exception.sha)
        self.assertEqual(ObjectType.BLOB, cm.exception.got)
        self.assertEqual(ObjectType.TREE, cm.exception.expected)

    def test_tag_with_wrong_declared_type(self) -> None:
        tag_id = self.repo.add(
            Object(ObjectType.TAG, make_tag(self.blob_id, ObjectType.TREE).as_bytes())
        )
        self.assertRaises(ObjectTypeMismatch, self._cat, ObjectType.TREE, tag_id)

    def test_tag_of_blob_as_tree(self) -> None:
        tag_id = self.repo.add(
            Object(ObjectType.TAG, make_tag(self.blob_id, ObjectType.BLOB).as_bytes())
        )
        with self.assertRaises(UnsupportedReference) as cm:
            self._cat(ObjectType.TREE, tag_id)
        self.assertEqual(tag_id, cm.exception.sha)
        self.assertEqual(ObjectType.BLOB, cm.exception.target_type)
        self.assertEqual(HELLO, self._cat(ObjectType.BLOB, tag_id))

    def test_tag_of_tag(self) -> None:
        outer_data = make_tag(self.tag_id, ObjectType.TAG, name="v1-outer").as_bytes()
        outer_id = self.repo.add(Object(ObjectType.TAG, outer_data))
        self.assertEqual(outer_data, self._cat(ObjectType.TAG, outer_id))
        self.assertRaises(UnsupportedReference, self._cat, ObjectType.COMMIT, outer_id)

    def test_missing(self) -> None:
        with self.assertRaises(ObjectMissing) as cm:
            self._cat(ObjectType.BLOB, ObjectID.zero())
        self.assertIsInstance(cm.exception, KeyError)
        self.assertEqual(
            f"{ObjectID.zero()} is not in the repository", str(cm.exception)
        )

    def test_missing_tree_of_commit(self) -> None:
        commit_id = self.repo.add(
            Object(ObjectType.COMMIT, make_commit(ObjectID.zero()).as_bytes())
        )
        self.assertRaises(ObjectMissing, self._cat, ObjectType.TREE, commit_id)

    def test_hop_limit(self) -> None:
        settings = Settings(max_hops=1)
        self.assertEqual(
            self.tree_data,
            self._cat(ObjectType.TREE, self.commit_id, settings=settings),
        )
        with self.assertRaises(DereferenceLimitExceeded) as cm:
            self._cat(ObjectType.TREE, self.tag_id, settings=settings)
        self.assertIsInstance(cm.exception, UnsupportedReference)
        self.assertEqual(1, cm.exception.limit)

    def test_cancelled_before_start(self) -> None:
        self.ctx.cancel()
        self.assertRaises(Cancelled, self._cat, ObjectType.TREE, self.tag_id)
        self.assertEqual([], self.repo.opened)

    def test_cancelled_during_copy(self) -> None:
        ctx = self.ctx.with_cancel()
        out = CancellingWriter(ctx)
        with self.assertRaises(Cancelled):
            cat(
                ctx,
                self.repo,
                out,
                ObjectType.BLOB,
                self.blob_id,
                settings=Settings(buffer_size=4),
            )
        self.assertEqual(HELLO[:4], out.getvalue())

    def test_corrupted_empty_object(self) -> None:
        self.repo.objects[self.blob_id] = Object(ObjectType.BLOB, b"")
        out = BytesIO()
        with self.assertRaises(ChecksumMismatch) as cm:
            cat(self.ctx, self.repo, out, ObjectType.BLOB, self.blob_id)
        self.assertEqual(EMPTY_BLOB_ID, cm.exception.got)
        self.assertEqual(b"", out.getvalue())

    def test_corrupted_empty_tree_of_commit(self) -> None:
        self.repo.objects[self.tree_id] = Object(ObjectType.TREE, b"")
        self.assertRaises(
            ChecksumMismatch, self._cat, ObjectType.TREE, self.commit_id
        )

    def test_corrupted_object(self) -> None:
        self.repo.objects[self.blob_id] = Object(ObjectType.BLOB, b"Hello, World?\n")
        out = BytesIO()
        with self.assertRaises(ChecksumMismatch) as cm:
            cat(self.ctx, self.repo, out, ObjectType.BLOB, self.blob_id)
        self.assertEqual(self.blob_id, cm.exception.expected)
        self.assertEqual(b"", out.getvalue())

    def test_readers_closed(self) -> None:
        self._cat(ObjectType.TREE, self.tag_id)
        self.assertRaises(GitRepoError, self._cat, ObjectType.BLOB, self.tag_id)
        self.assertTrue(self.repo.readers)
        self.assertTrue(all(r.closed for r in self.repo.readers))


class CatterTests(TestCase):
    def test_protocols(self) -> None:
        self.assertIsInstance(DictRepository(), Repository)
        self.assertNotIsInstance(DictRepository(), Catter)
        self.assertIsInstance(RecordingCatter(), Catter)

    def test_prefers_catter(self) -> None:
        repo = RecordingCatter()
        out = BytesIO()
        cat(self.ctx, repo, out, ObjectType.TREE, HELLO_ID)
        self.assertEqual(b"fused", out.getvalue())
        self.assertEqual([(ObjectType.TREE, HELLO_ID)], repo.calls)
        self.assertEqual([], repo.opened)

    def test_only_repository(self) -> None:
        repo = RecordingCatter()
        repo.add(Object(ObjectType.BLOB, HELLO))
        view = only_repository(repo)
        self.assertNotIsInstance(view, Catter)
        out = BytesIO()
        cat(self.ctx, view, out, ObjectType.BLOB, HELLO_ID)
        self.assertEqual(HELLO, out.getvalue())
        self.assertEqual([], repo.calls)
        self.assertEqual(Prefix(ObjectType.BLOB, 14), view.stat(self.ctx, HELLO_ID))


class ObjectReaderTests(TestCase):
    def _reader(self, data=HELLO, size=14, expected_id=HELLO_ID, ctx=None):
        return ObjectReader(
            ctx or self.ctx, Prefix(ObjectType.BLOB, size), BytesIO(data), expected_id
        )

    def test_read(self) -> None:
        with self._reader() as r:
            self.assertEqual(HELLO, r.read())
            self.assertEqual(b"", r.read())

    def test_read_in_chunks(self) -> None:
        r = self._reader()
        self.assertEqual(b"Hello", r.read(5))
        self.assertEqual(b", World!\n", r.read(100))
        self.assertEqual(b"", r.read(5))

    def test_stops_at_declared_size(self) -> None:
        r = self._reader(data=HELLO + b"trailing", expected_id=None)
        self.assertEqual(HELLO, r.read())

    def test_truncated(self) -> None:
        r = self._reader(data=HELLO[:10])
        with self.assertRaises(TruncatedObject) as cm:
            r.read()
        self.assertEqual(14, cm.exception.expected)
        self.assertEqual(10, cm.exception.got)

    def test_checksum_mismatch(self) -> None:
        r = self._reader(expected_id=ObjectID.zero())
        self.assertEqual(b"Hello", r.read(5))
        with self.assertRaises(ChecksumMismatch) as cm:
            r.read()
        self.assertEqual(ObjectID.zero(), cm.exception.expected)
        self.assertEqual(HELLO_ID, cm.exception.got)

    def test_checksum_mismatch_is_sticky(self) -> None:
        r = self._reader(expected_id=ObjectID.zero())
        self.assertRaises(ChecksumMismatch, r.read)
        with self.assertRaises(ChecksumMismatch) as cm:
            r.read()
        self.assertEqual(HELLO_ID, cm.exception.got)
        self.assertRaises(ChecksumMismatch, r.read, 1)

    def test_empty_payload(self) -> None:
        r = self._reader(data=b"", size=0, expected_id=EMPTY_BLOB_ID)
        self.assertEqual(b"", r.read())
        self.assertEqual(b"", r.read())

    def test_empty_payload_mismatch(self) -> None:
        r = self._reader(data=b"", size=0, expected_id=HELLO_ID)
        with self.assertRaises(ChecksumMismatch) as cm:
            r.read()
        self.assertEqual(HELLO_ID, cm.exception.expected)
        self.assertEqual(EMPTY_BLOB_ID, cm.exception.got)
        self.assertRaises(ChecksumMismatch, r.read)

    def test_read_zero(self) -> None:
        source = BytesIO(HELLO)
        r = ObjectReader(self.ctx, Prefix(ObjectType.BLOB, 14), source, HELLO_ID)
        self.assertEqual(b"", r.read(0))
        self.assertEqual(0, source.tell())
        self.assertEqual(HELLO, r.read())

    def test_cancelled(self) -> None:
        ctx = self.ctx.with_cancel()
        r = self._reader(ctx=ctx)
        self.assertEqual(b"Hello", r.read(5))
        ctx.cancel()
        self.assertRaises(Cancelled, r.read)

    def test_close_releases_source(self) -> None:
        source = BytesIO(HELLO)
        with ObjectReader(self.ctx, Prefix(ObjectType.BLOB, 14), source) as r:
            r.read(1)
        self.assertTrue(r.closed)
        self.assertTrue(source.closed)
        self.assertRaises(ValueError, r.read)


class CopyObjectTests(TestCase):
    def test_copy(self) -> None:
        out = BytesIO()
        self.assertEqual(14, copy_object(self.ctx, out, BytesIO(HELLO), 3))
        self.assertEqual(HELLO, out.getvalue())

    def test_cancelled(self) -> None:
        self.ctx.cancel()
        out = BytesIO()
        self.assertRaises(Cancelled, copy_object, self.ctx, out, BytesIO(HELLO))
        self.assertEqual(b"", out.getvalue())
