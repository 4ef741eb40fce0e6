"""
Pytest configuration for assetmint tests
"""

import json
import tempfile
import threading
import time
from pathlib import Path

import pytest

from assetmint.core.exceptions import TransientIOError
from assetmint.services.uploader.interfaces import StorageBackend
from assetmint.services.wallet import Keypair

PNG_HEADER = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x02\x00\x00\x00"
JPEG_HEADER = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
PAYER_SECRET = Keypair.from_seed(bytes(range(100, 132))).secret_key


class FakeBackend(StorageBackend):
    """In-memory backend that records calls and peak concurrency"""

    name = "fake"

    def __init__(self, fail_names=(), delay: float = 0.0, on_call=None, honor_cancel: bool = False):
        super().__init__()
        self.fail_names = set(fail_names)
        self.delay = delay
        self.on_call = on_call
        self.honor_cancel = honor_cancel
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def upload(self, file, on_progress=None, cancel=None):
        with self._lock:
            self.calls.append(file)
            call_number = len(self.calls)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.on_call:
                self.on_call(call_number)
            if self.honor_cancel:
                self._check_cancelled(cancel)
            time.sleep(self.delay)
            if file.file_name in self.fail_names:
                raise TransientIOError(f"backend rejected {file.file_name}")
            if on_progress:
                on_progress(100)
            return f"https://storage.test/{file.unique_name}"
        finally:
            with self._lock:
                self.in_flight -= 1


@pytest.fixture
def temp_dir():
    """Temporary directory for test outputs"""
    with tempfile.TemporaryDirectory() as tmpdirname:
        yield Path(tmpdirname)


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def backend_factory():
    """Build FakeBackends with custom behaviour"""
    return FakeBackend


@pytest.fixture
def png_bytes():
    return PNG_HEADER + b"\x00" * 64


@pytest.fixture
def jpeg_bytes():
    return JPEG_HEADER + b"\x00" * 64


@pytest.fixture
def make_files(temp_dir, png_bytes):
    """Write `count` distinct PNG files and return their paths"""
    def _make(count, prefix="image"):
        paths = []
        for i in range(count):
            path = temp_dir / f"{prefix}_{i}.png"
            path.write_bytes(png_bytes + i.to_bytes(4, "big"))
            paths.append(str(path))
        return paths
    return _make


@pytest.fixture
def secret_key():
    return Keypair.from_seed(bytes(range(32))).secret_key


@pytest.fixture
def keypair(secret_key):
    return Keypair(secret_key=secret_key)


@pytest.fixture
def keypair_file(temp_dir):
    """Keypair file for a wallet distinct from the `keypair` fixture"""
    path = temp_dir / "payer.json"
    path.write_text(json.dumps(list(PAYER_SECRET)))
    return str(path)


@pytest.fixture
def payer_secret():
    """Secret stored in `keypair_file`"""
    return PAYER_SECRET
