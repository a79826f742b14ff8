# Shared pytest fixtures
from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd
import pytest

from stocksync.config.loader import Settings, SettingsStore
from stocksync.logging.init import APP_LOGGER_NAME, reset_logging
from stocksync.models.document import PURCHASE_HEADER, STOCK_HEADER
from stocksync.services.lock import LockCoordinator
from stocksync.services.manager import StockManager


def _write_workbook(path: Path, rows: list[list[object]]) -> Path:
    """Create a real .xlsx file with a single sheet holding rows verbatim."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(rows, dtype=object).to_excel(writer, sheet_name="Sheet1", header=False, index=False)
    return path


@pytest.fixture(autouse=True)
def _clean_app_logger():
    yield
    reset_logging()
    logger = logging.getLogger(APP_LOGGER_NAME)
    for h in logger.handlers[:]:
        logger.removeHandler(h)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture()
def temp_workdir(tmp_path: Path, monkeypatch) -> Path:
    (tmp_path / "local").mkdir()
    (tmp_path / "cloud").mkdir()
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("STOCKSYNC_USER", raising=False)
    monkeypatch.delenv("STOCKSYNC_SETTINGS", raising=False)
    return tmp_path


@pytest.fixture()
def stock_rows() -> list[list[object]]:
    return [
        list(STOCK_HEADER),
        ["BoltM6", "P1", 10, "Assembly", "Ann", "Bob", "Acme"],
        ["Nut M6", "P2", 4, "Assembly", "Ann", "Bob", "Acme"],
    ]


@pytest.fixture()
def purchase_rows() -> list[list[object]]:
    return [
        list(PURCHASE_HEADER),
        ["BoltM6", "P1", 5, None, None, None, None],
        ["Washer", "P9", 3, "Stores", "Cid", "Dee", "FastCo"],
    ]


@pytest.fixture()
def stock_file(temp_workdir: Path, stock_rows) -> Path:
    return _write_workbook(temp_workdir / "local" / "stock.xlsx", stock_rows)


@pytest.fixture()
def purchase_file(temp_workdir: Path, purchase_rows) -> Path:
    return _write_workbook(temp_workdir / "local" / "purchase.xlsx", purchase_rows)


@pytest.fixture()
def cloud_dir(temp_workdir: Path) -> Path:
    return temp_workdir / "cloud"


def _make_manager(
    settings_path: Path | None = None, user: str = "userA", role: str = "editor", cloud: Path | None = None
) -> StockManager:
    """Build a manager; an existing settings file wins over the keyword defaults."""
    if settings_path is not None and settings_path.exists():
        return StockManager(SettingsStore.load(settings_path))
    settings = Settings(current_user=user, user_role=role, cloud_folder=str(cloud) if cloud else "")
    store = SettingsStore(settings_path, settings)
    return StockManager(store)


@pytest.fixture()
def manager(temp_workdir: Path, cloud_dir: Path) -> StockManager:
    return _make_manager(temp_workdir / "settings_a.yml", user="userA", cloud=cloud_dir)


class FakeClock:
    """Settable clock for lock staleness / deferred release tests."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def lock_factory(clock: FakeClock):
    def _make(user: str) -> LockCoordinator:
        return LockCoordinator(lambda: user, clock=clock)
    return _make


@pytest.fixture()
def make_workbook():
    return _write_workbook


@pytest.fixture()
def manager_factory(temp_workdir: Path, cloud_dir: Path):
    def _make(user: str = "userA", role: str = "editor", cloud: bool = True, settings_name: str | None = None):
        settings_path = temp_workdir / (settings_name or f"settings_{user}.yml")
        return _make_manager(settings_path, user=user, role=role, cloud=cloud_dir if cloud else None)
    return _make
