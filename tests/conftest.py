# shared fixtures: tests work on copies in tmp_path so they can edit and delete the source freely

import os
import shutil
import time
from pathlib import Path

import pytest

from tempavg.loader import CsvLoader
from tempavg.store import TemperatureStore

DATA_DIR = Path(__file__).parent / "data"


def write_lines(path: Path, lines) -> Path:
    path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
    return path


def bump_mtime(path: Path, seconds: int = 2) -> None:
    # coarse filesystem clocks can leave an edit with the same mtime, so push it forward explicitly
    st = path.stat()
    os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns + seconds * 1_000_000_000))


def wait_for(condition, timeout: float = 3.0, step: float = 0.01) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(step)
    return condition()


@pytest.fixture
def source(tmp_path) -> Path:
    target = tmp_path / "measurements.csv"
    shutil.copy(DATA_DIR / "measurements.csv", target)
    return target


@pytest.fixture
def store() -> TemperatureStore:
    return TemperatureStore()


@pytest.fixture
def loader(source, store) -> CsvLoader:
    return CsvLoader(source, store)
