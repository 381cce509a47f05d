"""
Tests for fetching and unpacking the pinned schema archive.
"""

import contextlib
import io
import tarfile
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import requests

import schema_downloader


PREFIX = schema_downloader.ARCHIVE_PREFIX


def make_archive(files, directories=()):
    """Build a gzipped tarball in memory from a {name: bytes} mapping."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name in directories:
            info = tarfile.TarInfo(name)
            info.type = tarfile.DIRTYPE
            tar.addfile(info)
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


ARCHIVE = make_archive(
    {
        f"{PREFIX}/source/behavior/entities/format/components.json": b'{"properties": {}}',
        f"{PREFIX}/../escape.json": b"{}",
        "unrelated-root/ignored.json": b"{}",
    },
    directories=[PREFIX, f"{PREFIX}/source", f"{PREFIX}/source/empty"],
)


class TestExtractArchive(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.repo_dir = Path(self.tmp.name) / "cache" / "repo"
        self.repo_dir.mkdir(parents=True)

    def extract(self):
        with contextlib.redirect_stdout(io.StringIO()):
            return schema_downloader.extract_archive(io.BytesIO(ARCHIVE), self.repo_dir)

    def test_prefix_is_stripped(self):
        self.assertEqual(self.extract(), 1)
        target = self.repo_dir / "source/behavior/entities/format/components.json"
        self.assertEqual(target.read_bytes(), b'{"properties": {}}')
        self.assertTrue((self.repo_dir / "source/empty").is_dir())

    def test_foreign_and_escaping_entries_are_skipped(self):
        self.extract()
        self.assertFalse((self.repo_dir / "unrelated-root").exists())
        self.assertFalse((self.repo_dir.parent / "escape.json").exists())


class TestEnsureRepoReady(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.repo_dir = Path(self.tmp.name) / "repo"

    def ensure(self):
        with contextlib.redirect_stdout(io.StringIO()):
            return schema_downloader.ensure_repo_ready(self.repo_dir)

    @mock.patch("schema_downloader.requests.get")
    def test_downloads_once(self, get):
        get.return_value = mock.Mock(status_code=200, content=ARCHIVE)

        self.assertTrue(self.ensure())
        self.assertTrue((self.repo_dir / schema_downloader.READY_MARKER).exists())
        self.assertTrue((self.repo_dir / "source/behavior/entities/format/components.json").exists())

        self.assertTrue(self.ensure())
        get.assert_called_once_with(
            schema_downloader.archive_url(),
            headers=schema_downloader.HEADERS,
            timeout=schema_downloader.TIMEOUT,
        )

    @mock.patch("schema_downloader.requests.get")
    def test_stale_cache_is_replaced(self, get):
        get.return_value = mock.Mock(status_code=200, content=ARCHIVE)
        self.repo_dir.mkdir(parents=True)
        (self.repo_dir / "leftover.json").write_text("{}", encoding="utf-8")

        self.assertTrue(self.ensure())
        self.assertFalse((self.repo_dir / "leftover.json").exists())

    @mock.patch("schema_downloader.requests.get")
    def test_http_error(self, get):
        get.return_value = mock.Mock(status_code=404, content=b"")
        self.assertFalse(self.ensure())
        self.assertFalse((self.repo_dir / schema_downloader.READY_MARKER).exists())

    @mock.patch("schema_downloader.requests.get", side_effect=requests.ConnectionError("offline"))
    def test_network_error(self, get):
        self.assertFalse(self.ensure())
        self.assertFalse((self.repo_dir / schema_downloader.READY_MARKER).exists())

    @mock.patch("schema_downloader.requests.get")
    def test_corrupt_archive(self, get):
        get.return_value = mock.Mock(status_code=200, content=b"not a tarball")
        self.assertFalse(self.ensure())
        self.assertFalse((self.repo_dir / schema_downloader.READY_MARKER).exists())


class TestArchiveUrl(unittest.TestCase):
    def test_pinned_ref(self):
        self.assertEqual(
            schema_downloader.archive_url("owner/repo", "abc"),
            "https://codeload.github.com/owner/repo/tar.gz/abc",
        )
        self.assertIn(schema_downloader.REF, schema_downloader.archive_url())


if __name__ == "__main__":
    unittest.main()
