"""Tests for tabby.core.utils.file_io."""

import os

import pytest

from tabby.core.utils.file_io import atomic_write


class TestAtomicWrite:
    def test_creates_file(self, tmp_dir):
        path = os.path.join(tmp_dir, "sub", "file.txt")
        atomic_write(path, "hello")
        with open(path) as f:
            assert f.read() == "hello"

    def test_creates_parent_dirs(self, tmp_dir):
        path = os.path.join(tmp_dir, "a", "b", "c.txt")
        assert atomic_write(path, "nested").exists()

    def test_replaces_existing(self, tmp_dir):
        path = os.path.join(tmp_dir, "file.txt")
        atomic_write(path, "old")
        atomic_write(path, "new")
        with open(path) as f:
            assert f.read() == "new"

    def test_bytes_and_unicode(self, tmp_dir):
        path = os.path.join(tmp_dir, "file.txt")
        atomic_write(path, "café ☕")
        with open(path, encoding="utf-8") as f:
            assert f.read() == "café ☕"
        atomic_write(path, b"\x00\x01")
        with open(path, "rb") as f:
            assert f.read() == b"\x00\x01"

    def test_no_temp_files_left(self, tmp_dir):
        atomic_write(os.path.join(tmp_dir, "file.txt"), "x")
        assert os.listdir(tmp_dir) == ["file.txt"]

    def test_failed_write_keeps_original(self, tmp_dir, monkeypatch):
        path = os.path.join(tmp_dir, "file.txt")
        atomic_write(path, "original")

        def broken_replace(src, dst):
            raise OSError("rename failed")

        monkeypatch.setattr(os, "replace", broken_replace)
        with pytest.raises(OSError):
            atomic_write(path, "replacement")

        with open(path) as f:
            assert f.read() == "original"
        assert os.listdir(tmp_dir) == ["file.txt"]
