"""Tests for core.keys - directory keys"""

import hashlib
import os

import pytest

from tici.core.keys import DIGEST_LENGTH, directory_key, resolve_directory
from tici.errors import InvalidPathError


class TestDirectoryKey:
    """Test directory_key function"""

    def test_same_path_same_key(self):
        assert directory_key("/home/u/proj") == directory_key("/home/u/proj")

    def test_shared_basename_distinct_keys(self):
        """Directories sharing a basename must not collide"""
        a = directory_key("/home/u/work/app")
        b = directory_key("/home/u/play/app")
        assert a.label == b.label == "app"
        assert a.digest != b.digest
        assert a.record_name != b.record_name

    def test_many_paths_distinct(self):
        paths = [f"/srv/project{i}/src" for i in range(500)]
        assert len({directory_key(p).record_name for p in paths}) == len(paths)

    def test_record_name_format(self):
        key = directory_key("/home/u/proj")
        assert key.record_name == f"session_{key.digest}_proj"
        assert len(key.digest) == DIGEST_LENGTH
        assert all(c in "0123456789abcdef" for c in key.digest)

    def test_record_name_is_filesystem_safe(self):
        key = directory_key("/home/u/my project.v2:x")
        assert os.sep not in key.record_name
        assert key.label == "my_project_v2_x"
        assert key.session_name == f"my_project_v2_x-{key.digest[:6]}"

    def test_root_directory(self):
        key = directory_key("/")
        assert key.label == "root"
        assert key.path == "/"

    def test_shared_basename_distinct_sessions(self):
        a = directory_key("/a/proj")
        b = directory_key("/b/proj")
        assert a.session_name != b.session_name
        assert a.session_name.startswith("proj-")

    def test_undecodable_name(self):
        """Non UTF-8 names arrive surrogate-escaped from os.getcwd()"""
        key = directory_key("/tmp/caf\udce9")
        assert key.digest == hashlib.sha256(b"/tmp/caf\xe9").hexdigest()[:DIGEST_LENGTH]
        assert key.label == "caf_"

    def test_str_is_record_name(self):
        key = directory_key("/tmp")
        assert str(key) == key.record_name

    @pytest.mark.parametrize(
        "path",
        ["", "relative/dir", "./proj", "/home/u/../proj", "/home/u/proj/", "/home//u", "//home/u", "/home/./u"],
    )
    def test_invalid_paths_rejected(self, path):
        with pytest.raises(InvalidPathError):
            directory_key(path)


class TestResolveDirectory:
    """Test resolve_directory function"""

    def test_defaults_to_cwd(self, tmp_path):
        assert resolve_directory(None, cwd=str(tmp_path)) == os.path.realpath(tmp_path)

    def test_relative_override_joined_to_cwd(self, tmp_path):
        (tmp_path / "sub").mkdir()
        assert resolve_directory("sub", cwd=str(tmp_path)) == os.path.realpath(tmp_path / "sub")

    def test_absolute_override_wins(self, tmp_path):
        other = tmp_path / "other"
        other.mkdir()
        assert resolve_directory(str(other), cwd="/") == os.path.realpath(other)

    def test_symlink_resolved(self, tmp_path):
        real = tmp_path / "real"
        real.mkdir()
        link = tmp_path / "link"
        link.symlink_to(real)
        assert resolve_directory(str(link)) == os.path.realpath(real)

    def test_missing_directory(self, tmp_path):
        with pytest.raises(InvalidPathError):
            resolve_directory(str(tmp_path / "never-saved"))

    def test_result_is_a_valid_key_input(self, tmp_path):
        directory = resolve_directory("./", cwd=str(tmp_path))
        assert directory_key(directory).path == directory
