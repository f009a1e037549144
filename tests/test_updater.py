import io
import json
import os
import tarfile
import urllib.error
from unittest import mock

import pytest

from shrine.updater import UpdateError, extract_binary, is_newer, latest_version, update


class _Response(io.BytesIO):
    def __init__(self, body: bytes, status: int = 200) -> None:
        super().__init__(body)
        self.status = status


def _tarball(members):
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as archive:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            archive.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def _release(tag):
    return _Response(json.dumps({"tag_name": tag}).encode())


def _http_error(code):
    return urllib.error.HTTPError("http://localhost/", code, "error", {}, None)


def test_is_newer_detects_new_release():
    assert is_newer("v1.0.0", "v1.1.0")
    assert is_newer("1.0.0", "v2.0.0")


def test_is_newer_ignores_prefix_and_empty_and_dev():
    assert not is_newer("v1.0.0", "1.0.0")
    assert not is_newer("v1.0.0", "")
    assert not is_newer("dev", "v1.0.0")


def test_extract_binary_top_level():
    payload = b"\x7fELF-binary"
    data = _tarball({"README.md": b"docs", "shrine": payload})
    assert extract_binary(io.BytesIO(data)) == payload


def test_extract_binary_nested_path():
    payload = b"nested-binary"
    data = _tarball({"dist/shrine-notes": b"x", "dist/shrine": payload})
    assert extract_binary(io.BytesIO(data)) == payload


def test_extract_binary_missing():
    data = _tarball({"LICENSE": b"text"})
    with pytest.raises(UpdateError, match="shrine binary not found in archive"):
        extract_binary(io.BytesIO(data))


def test_extract_binary_rejects_non_gzip():
    with pytest.raises(UpdateError):
        extract_binary(io.BytesIO(b"not an archive at all"))


def test_latest_version_reads_tag():
    with mock.patch("urllib.request.urlopen", return_value=_release("v3.4.5")):
        assert latest_version() == "v3.4.5"


def test_latest_version_http_error():
    with mock.patch("urllib.request.urlopen", side_effect=_http_error(503)):
        with pytest.raises(UpdateError, match="GitHub API returned 503"):
            latest_version()


def test_update_replaces_executable(tmp_path):
    exe = tmp_path / "shrine"
    exe.write_bytes(b"old")
    payload = b"brand-new-binary"
    out = io.StringIO()
    responses = [_release("v9.9.9"), _Response(_tarball({"shrine": payload}))]

    with mock.patch("urllib.request.urlopen", side_effect=responses) as urlopen:
        update(out, str(exe))

    assert exe.read_bytes() == payload
    assert os.access(exe, os.X_OK)
    assert "shrine updated to v9.9.9" in out.getvalue()
    assert list(tmp_path.iterdir()) == [exe]
    download_url = urlopen.call_args_list[1].args[0].full_url
    assert "/v9.9.9/shrine_" in download_url
    assert download_url.endswith(".tar.gz")


def test_update_wraps_version_failure(tmp_path):
    exe = tmp_path / "shrine"
    exe.write_bytes(b"old")
    with mock.patch("urllib.request.urlopen", side_effect=_http_error(500)):
        with pytest.raises(UpdateError, match="fetching latest version"):
            update(io.StringIO(), str(exe))
    assert exe.read_bytes() == b"old"


def test_update_download_failure_leaves_binary(tmp_path):
    exe = tmp_path / "shrine"
    exe.write_bytes(b"old")
    responses = [_release("v2.0.0"), _http_error(404)]
    with mock.patch("urllib.request.urlopen", side_effect=responses):
        with pytest.raises(UpdateError, match="download returned 404"):
            update(io.StringIO(), str(exe))
    assert exe.read_bytes() == b"old"


def test_update_archive_without_binary(tmp_path):
    exe = tmp_path / "shrine"
    exe.write_bytes(b"old")
    responses = [_release("v2.0.0"), _Response(_tarball({"other": b"x"}))]
    with mock.patch("urllib.request.urlopen", side_effect=responses):
        with pytest.raises(UpdateError, match="extracting binary"):
            update(io.StringIO(), str(exe))
    assert exe.read_bytes() == b"old"