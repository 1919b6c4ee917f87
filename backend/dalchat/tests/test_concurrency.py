"""
Concurrent mutations on one server.

Runs the services from several threads, each with its own session, against
a file-backed SQLite database so every thread gets a real connection.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from dalchat.core.errors import NotFound
from dalchat.database import Base, as_utc
from dalchat.models.message import Message
from dalchat.services import identity, membership, message_log, registry

WRITERS = 4
MESSAGES_PER_WRITER = 10


@pytest.fixture()
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'concurrency.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def populated(session_factory):
    """A server owned by the first of WRITERS users, all of them members."""
    with session_factory() as db:
        users = [
            identity.register(db, f"writer{i}@example.com", "secret1", f"Writer {i}")
            for i in range(WRITERS)
        ]
        server = registry.create_server(db, "Busy", users[0])
        for user in users[1:]:
            membership.join(db, server.id, user)
        return server.id, [(u.id, u.display_name) for u in users]


def _run_together(workers: list) -> list:
    """Start every worker at the same moment; collect results or raised errors."""
    barrier = threading.Barrier(len(workers))

    def run(worker):
        barrier.wait()
        try:
            return worker()
        except Exception as exc:
            return exc

    with ThreadPoolExecutor(max_workers=len(workers)) as pool:
        return list(pool.map(run, workers))


class TestConcurrentAppends:
    def test_seq_has_no_gaps_or_duplicates(self, session_factory, populated):
        server_id, writers = populated

        def writer(user_id, username):
            def work():
                sent = []
                for n in range(MESSAGES_PER_WRITER):
                    with session_factory() as db:
                        message = message_log.append(db, server_id, "general", user_id, username, f"{username} {n}")
                        sent.append(message.seq)
                return sent

            return work

        results = _run_together([writer(user_id, name) for user_id, name in writers])
        assert not [r for r in results if isinstance(r, Exception)]

        total = WRITERS * MESSAGES_PER_WRITER
        assert sorted(seq for sent in results for seq in sent) == list(range(1, total + 1))

        with session_factory() as db:
            log = message_log.list_messages(db, server_id, "general")
            assert [m.seq for m in log] == list(range(1, total + 1))
            times = [as_utc(m.time) for m in log]
            assert all(a < b for a, b in zip(times, times[1:]))
            assert registry.get_channel(db, server_id, "general").last_seq == total

    def test_each_writer_keeps_its_own_order(self, session_factory, populated):
        server_id, writers = populated

        def writer(user_id, username):
            def work():
                for n in range(MESSAGES_PER_WRITER):
                    with session_factory() as db:
                        message_log.append(db, server_id, "general", user_id, username, str(n))

            return work

        _run_together([writer(user_id, name) for user_id, name in writers])

        with session_factory() as db:
            log = message_log.list_messages(db, server_id, "general")
        for user_id, _ in writers:
            mine = [int(m.text) for m in log if m.user_id == user_id]
            assert mine == list(range(MESSAGES_PER_WRITER))


class TestConcurrentStructuralChanges:
    def test_double_delete_has_one_winner(self, session_factory, populated):
        server_id, writers = populated
        owner_id, owner_name = writers[0]
        with session_factory() as db:
            registry.create_channel(db, server_id, "tmp", owner_id)
            for n in range(3):
                message_log.append(db, server_id, "tmp", owner_id, owner_name, f"m{n}")

        def delete():
            with session_factory() as db:
                registry.delete_channel(db, server_id, "tmp", owner_id)
                return "deleted"

        results = _run_together([delete, delete])

        assert results.count("deleted") == 1
        assert sum(isinstance(r, NotFound) for r in results) == 1
        with session_factory() as db:
            leftover = db.query(Message).filter(Message.server_id == server_id, Message.channel_id == "tmp").count()
            assert leftover == 0
            assert "tmp" not in [c.id for c in registry.list_channels(db, server_id)]

    def test_concurrent_creates_of_one_name(self, session_factory, populated):
        server_id, writers = populated
        owner_id, _ = writers[0]

        def create():
            with session_factory() as db:
                return registry.create_channel(db, server_id, "race", owner_id).id

        results = _run_together([create, create, create])

        assert results.count("race") == 1
        assert sum(isinstance(r, Exception) for r in results) == 2
        with session_factory() as db:
            ids = [c.id for c in registry.list_channels(db, server_id)]
        assert ids == ["general", "announcements", "race"]
