import hashlib
import zipfile

import pytest

from stackwright.api.exceptions import BundleError
from stackwright.core.bundler import bundle_checksum, bundle_function, create_bundle
from stackwright.utils.hash_utils import calculate_sha256_async, hash_bytes


@pytest.fixture
def build_output(tmp_path):
    root = tmp_path / "out"
    (root / "pkg" / "__pycache__").mkdir(parents=True)
    (root / "pkg" / "__init__.py").write_text("")
    (root / "pkg" / "__pycache__" / "x.pyc").write_bytes(b"\0")
    (root / "pkg" / "handler.py").write_text("def handler(e, c):\n    pass\n")
    return root


def test_bundles_are_reproducible(build_output, tmp_path):
    first = create_bundle(build_output, tmp_path / "a.zip").read_bytes()
    (build_output / "pkg" / "handler.py").touch()
    second = create_bundle(build_output, tmp_path / "b.zip").read_bytes()

    assert first == second


def test_bundle_contents(build_output, tmp_path):
    path = create_bundle(build_output, tmp_path / "a.zip")

    with zipfile.ZipFile(path) as archive:
        assert archive.namelist() == ["pkg/__init__.py", "pkg/handler.py"]


def test_missing_build_output(tmp_path):
    with pytest.raises(BundleError):
        create_bundle(tmp_path / "missing", tmp_path / "a.zip")


@pytest.mark.asyncio
async def test_bundle_function_uses_unique_names(build_output, tmp_path):
    first = await bundle_function(build_output, tmp_path / "ws")
    second = await bundle_function(build_output, tmp_path / "ws")

    assert first != second
    assert first.parent == tmp_path / "ws"
    assert await bundle_checksum(first) == await bundle_checksum(second)


@pytest.mark.asyncio
async def test_sha256_matches_hashlib(tmp_path):
    path = tmp_path / "data.bin"
    path.write_bytes(b"x" * 200000)

    assert await calculate_sha256_async(path, chunk_size=4096) == hashlib.sha256(b"x" * 200000).hexdigest()


def test_hash_bytes_accepts_text():
    assert hash_bytes("abc") == hash_bytes(b"abc")
    assert len(hash_bytes(b"")) == 16
