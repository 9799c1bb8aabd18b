from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from linkio import crud, database
from linkio.models import Namespace

WORKERS = 4
CALLS_PER_WORKER = 25


# File-backed so each thread gets its own connection
@pytest.fixture()
def file_sessions(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'registry.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    database.init_db(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


def _run(session_factory, fn, *args):
    with session_factory() as db:
        return fn(db, *args)


def test_concurrent_resolves_lose_no_clicks(file_sessions):
    code = _run(file_sessions, crud.create_link, "https://example.com", None).short_code

    def worker(_):
        for _ in range(CALLS_PER_WORKER):
            _run(file_sessions, crud.resolve_link, code)

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        list(pool.map(worker, range(WORKERS)))

    assert _run(file_sessions, crud.peek_link, code).clicks == WORKERS * CALLS_PER_WORKER


def test_concurrent_creations_get_distinct_codes(file_sessions):
    def worker(i):
        return [
            _run(file_sessions, crud.create_media, f"Qm{i}-{n}", "a.png", "image/png", n, None).short_code
            for n in range(CALLS_PER_WORKER)
        ]

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        batches = list(pool.map(worker, range(WORKERS)))

    created = [code for batch in batches for code in batch]
    assert len(set(created)) == WORKERS * CALLS_PER_WORKER
    assert _run(file_sessions, crud.total_count, Namespace.MEDIA) == WORKERS * CALLS_PER_WORKER
