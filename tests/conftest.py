import sys
from pathlib import Path
import importlib
import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture()
def m():
    """Lazily import the main module for tests to avoid module-level import."""
    return importlib.import_module("main")


@pytest.fixture()
def no_progress(monkeypatch, m):
    """Capture progress rendering in the main module during tests."""
    calls = []

    def _stub(line: str):
        calls.append(line)

    monkeypatch.setattr(m, "_print_progress", _stub)
    return calls


@pytest.fixture()
def progress_recorder():
    """Provide a reusable progress callback and its call log."""
    calls = []

    def cb(done, total):
        calls.append((done, total))

    return cb, calls


SAMPLES = {
    "empty": b"",
    "single": b"A",
    "identical": b"\x00" * 300,
    "text": b"The quick brown fox jumps over the lazy dog. " * 5,
    "all_bytes": bytes(range(256)) * 3 + b"\xff" * 40,
    "skewed": b"a" * 20 + b"b" * 5 + b"c" * 5,
}


@pytest.fixture(params=sorted(SAMPLES))
def sample(request):
    """Representative inputs: empty, single byte, identical, mixed."""
    return SAMPLES[request.param]


@pytest.fixture()
def input_file(tmp_path: Path):
    """Write a small text file and return its path."""
    path = tmp_path / "in.txt"
    path.write_bytes(b"abracadabra abracadabra\n" * 10)
    return path
