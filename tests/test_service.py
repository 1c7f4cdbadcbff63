from __future__ import annotations

from medintake.db import make_engine, make_sessionmaker
from medintake.intake import InputSource, ScriptedResponseGenerator, SimulatedCaptureSource
from medintake.services import IntakeSessionService, TranscriptStore, init_db

from .conftest import OPENING


def test_sessions_are_independent(settings):
    service = IntakeSessionService(settings=settings)
    a = service.start_session()
    b = service.start_session()

    assert a.session_id != b.session_id
    assert len(service) == 2
    assert service.get_session(a.session_id) is a
    assert service.get_session("nope") is None


def test_engine_built_from_settings(settings):
    service = IntakeSessionService(settings=settings)
    engine = service.start_session()

    assert engine.total_steps == 4
    assert [t.content for t in engine.messages()] == [OPENING]
    assert isinstance(service.generator, ScriptedResponseGenerator)
    assert service.store is None


def test_each_session_gets_its_own_capture_source(settings):
    service = IntakeSessionService(settings=settings)
    assert isinstance(service.capture_source_factory(), SimulatedCaptureSource)
    assert service.capture_source_factory() is not service.capture_source_factory()


async def test_end_session_cancels_capture(settings):
    service = IntakeSessionService(settings=settings)
    engine = service.start_session()
    engine.start_capture()

    assert service.end_session(engine.session_id) is True
    assert engine.pending_input().source == InputSource.NONE
    assert service.get_session(engine.session_id) is None
    assert service.end_session(engine.session_id) is False


async def test_session_runs_end_to_end(settings):
    service = IntakeSessionService(settings=settings)
    engine = service.start_session()

    for _ in range(4):
        await engine.start_capture()
        await engine.commit()

    assert engine.is_complete()
    subject_turns = [t.content for t in engine.messages()[1::2]]
    assert subject_turns == settings.simulated_responses


class TestSessionLimit:
    async def _finish(self, engine) -> None:
        for k in range(4):
            await engine.commit(f"answer {k}")

    async def test_oldest_finished_session_is_evicted(self, settings):
        settings.max_sessions = 2
        service = IntakeSessionService(settings=settings)
        first = service.start_session()
        second = service.start_session()
        await self._finish(first)
        await self._finish(second)

        third = service.start_session()

        assert len(service) == 2
        assert service.get_session(first.session_id) is None
        assert service.get_session(second.session_id) is second
        assert service.get_session(third.session_id) is third

    async def test_sessions_in_progress_are_kept(self, settings):
        settings.max_sessions = 2
        service = IntakeSessionService(settings=settings)
        in_progress = service.start_session()
        await in_progress.commit("headache")
        finished = service.start_session()
        await self._finish(finished)

        service.start_session()
        assert service.get_session(in_progress.session_id) is in_progress
        assert service.get_session(finished.session_id) is None

        # nothing finished left to evict, so the registry grows past the limit
        service.start_session()
        assert len(service) == 3
        assert service.get_session(in_progress.session_id) is in_progress

    async def test_session_with_pending_save_is_kept(self, settings, scripted_generator):
        bind = make_engine("sqlite://")
        init_db(bind)
        store = TranscriptStore(session_factory=make_sessionmaker(bind))

        settings.max_sessions = 1
        service = IntakeSessionService(
            settings=settings, generator=scripted_generator, store=store
        )
        finished = service.start_session()
        await self._finish(finished)

        # the save is still in flight in its worker thread
        service.start_session()
        assert service.get_session(finished.session_id) is finished

        await service.flush_saves()
        service.start_session()
        assert service.get_session(finished.session_id) is None
        assert len(store.load_transcript(finished.session_id)) == 9
