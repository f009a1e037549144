"""Self-update from published releases."""

from __future__ import annotations

import contextlib
import io
import json
import os
import platform
import sys
import tarfile
import tempfile
import urllib.error
import urllib.request
from typing import BinaryIO, TextIO

REPO = os.environ.get("SHRINE_UPDATE_REPO", "shrine/shrine")
_LATEST_URL = "https://api.github.com/repos/{repo}/releases/latest"
_DOWNLOAD_URL = "https://github.com/{repo}/releases/download/{tag}/{archive}"
_BINARY_NAME = "shrine"

_ARCHES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "armv7l": "arm",
}


class UpdateError(Exception):
    """Raised when checking for or installing an update fails."""


def _open(url: str, timeout: float):
    request = urllib.request.Request(url, headers={"User-Agent": "shrine-updater"})
    return urllib.request.urlopen(request, timeout=timeout)


def latest_version() -> str:
    """Return the tag name of the latest published release."""
    url = _LATEST_URL.format(repo=REPO)
    try:
        with _open(url, 5) as response:
            if response.status != 200:
                raise UpdateError(f"GitHub API returned {response.status}")
            payload = json.load(response)
    except urllib.error.HTTPError as exc:
        raise UpdateError(f"GitHub API returned {exc.code}") from exc
    except (urllib.error.URLError, OSError, ValueError) as exc:
        raise UpdateError(str(exc)) from exc
    return str(payload.get("tag_name", ""))


def is_newer(current: str, latest: str) -> bool:
    """Report whether ``latest`` differs from a released ``current`` version."""
    return (
        latest.removeprefix("v") != current.removeprefix("v")
        and latest != ""
        and current != "dev"
    )


def extract_binary(stream: BinaryIO) -> bytes:
    """Return the contents of the ``shrine`` binary inside a gzipped tarball."""
    try:
        with tarfile.open(fileobj=stream, mode="r|gz") as archive:
            for member in archive:
                if member.name == _BINARY_NAME or member.name.endswith("/" + _BINARY_NAME):
                    handle = archive.extractfile(member)
                    return handle.read() if handle is not None else b""
    except (tarfile.TarError, OSError, EOFError) as exc:
        raise UpdateError(str(exc)) from exc
    raise UpdateError("shrine binary not found in archive")


def _platform() -> tuple[str, str]:
    machine = platform.machine().lower()
    return platform.system().lower(), _ARCHES.get(machine, machine)


def _download(url: str) -> bytes:
    try:
        with _open(url, 60) as response:
            if response.status != 200:
                raise UpdateError(f"download returned {response.status}")
            return response.read()
    except urllib.error.HTTPError as exc:
        raise UpdateError(f"download returned {exc.code}") from exc
    except (urllib.error.URLError, OSError) as exc:
        raise UpdateError(f"downloading release: {exc}") from exc


def update(out: TextIO | None = None, executable: str | None = None) -> None:
    """Download the latest release and replace the executable with it."""
    out = out if out is not None else sys.stdout
    try:
        latest = latest_version()
    except UpdateError as exc:
        raise UpdateError(f"fetching latest version: {exc}") from exc

    try:
        exe_path = os.path.realpath(executable or sys.argv[0], strict=True)
    except OSError as exc:
        raise UpdateError(f"resolving symlinks: {exc}") from exc

    goos, arch = _platform()
    archive = f"shrine_{goos}_{arch}.tar.gz"
    url = _DOWNLOAD_URL.format(repo=REPO, tag=latest, archive=archive)

    out.write(f"Downloading shrine {latest} ({goos}/{arch})...\n")
    body = _download(url)

    try:
        binary = extract_binary(io.BytesIO(body))
    except UpdateError as exc:
        raise UpdateError(f"extracting binary: {exc}") from exc

    try:
        fd, tmp_path = tempfile.mkstemp(prefix="shrine-update-", dir=os.path.dirname(exe_path))
    except OSError as exc:
        raise UpdateError(f"creating temp file: {exc}") from exc

    try:
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(binary)
        except OSError as exc:
            raise UpdateError(f"writing temp file: {exc}") from exc
        try:
            os.chmod(tmp_path, 0o755)
        except OSError as exc:
            raise UpdateError(f"chmod: {exc}") from exc
        try:
            os.replace(tmp_path, exe_path)
        except OSError as exc:
            raise UpdateError(f"replacing binary (try with sudo?): {exc}") from exc
    finally:
        with contextlib.suppress(FileNotFoundError):
            os.remove(tmp_path)

    out.write(f"shrine updated to {latest}\n")