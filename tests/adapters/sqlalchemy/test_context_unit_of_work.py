from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError

from factweave.adapters.sqlalchemy import (
    SqlAlchemyContextUnitOfWork,
    StartupError,
    shutdown,
    startup,
)
from factweave.adapters.sqlalchemy.unit_of_work import configured_engine
from factweave.domain.model import DiagnosticRun, StoreSaveError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_unit_of_work_requires_startup() -> None:
    with pytest.raises(StartupError):
        SqlAlchemyContextUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True, migrate=False)

    with pytest.raises(StartupError):
        startup(engine=engine_b, migrate=False)

    startup(engine=engine_b, force=True, migrate=False)
    assert configured_engine() is engine_b


def test_committed_work_is_visible(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True, migrate=False)
    run = DiagnosticRun(entity_id="acme", kind="website_lab", raw_result={"score": 3})

    with SqlAlchemyContextUnitOfWork() as uow:
        uow.repositories.runs.add(run)
        uow.commit()

    with SqlAlchemyContextUnitOfWork() as uow:
        stored = uow.repositories.runs.get(run.id)

    assert stored is not None
    assert stored.raw_result == {"score": 3}


def test_exception_rolls_back(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True, migrate=False)
    run = DiagnosticRun(entity_id="acme", kind="website_lab", raw_result=None)

    with pytest.raises(RuntimeError), SqlAlchemyContextUnitOfWork() as uow:
        uow.repositories.runs.add(run)
        raise RuntimeError("boom")

    with SqlAlchemyContextUnitOfWork() as uow:
        assert uow.repositories.runs.get(run.id) is None


def test_repositories_need_an_open_session(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True, migrate=False)
    uow = SqlAlchemyContextUnitOfWork()

    with pytest.raises(StartupError):
        _ = uow.repositories


def test_commit_failure_raises_store_save_error(
    sqlite_engine: Engine, monkeypatch: pytest.MonkeyPatch
) -> None:
    startup(engine=sqlite_engine, force=True, migrate=False)
    run = DiagnosticRun(entity_id="acme", kind="website_lab", raw_result=None)

    def failing_commit() -> None:
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    with SqlAlchemyContextUnitOfWork() as uow:
        uow.repositories.runs.add(run)
        monkeypatch.setattr(uow.session, "commit", failing_commit)
        with pytest.raises(StoreSaveError):
            uow.commit()

    with SqlAlchemyContextUnitOfWork() as uow:
        assert uow.repositories.runs.get(run.id) is None
