"""Tests for ReaderSession: command path, notifications and driver exclusion."""

import asyncio
import time
from pathlib import Path

from book_reader.commands import Move, MoveKind
from book_reader.document import Document
from book_reader.models import BookContent, ChangeSource, PageMetadata, Position, ReadingProgress
from book_reader.persistence import ProgressStore


class TestNotifications:
    """Tests for position-change publication."""

    def test_each_accepted_move_publishes_once(self, make_session):
        session = make_session()
        changes = []
        session.subscribe(changes.append)

        session.next_word()
        session.next_sentence()

        assert [c.position for c in changes] == [Position(0, 0, 1), Position(0, 1, 0)]
        assert changes[1].previous == Position(0, 0, 1)
        assert all(c.source is ChangeSource.USER for c in changes)
        assert all(c.document_id == "current" for c in changes)

    def test_noop_moves_do_not_publish(self, make_session):
        session = make_session()
        changes = []
        session.subscribe(changes.append)

        session.prev_word()
        session.prev_paragraph()
        session.jump_to(Position(0, 0, 0))

        assert changes == []

    def test_jump_publishes_clamped_position(self, make_session):
        session = make_session()
        changes = []
        session.subscribe(changes.append)

        assert session.jump_to(Position(9999, 0, 0)) == Position(2, 0, 0)
        assert changes[0].position == Position(2, 0, 0)

    def test_observer_moves_are_serialized(self, make_session):
        """A move submitted from an observer runs after the current one is published."""
        session = make_session()
        seen = []

        def observer(change):
            seen.append(change.position)
            if change.position == Position(0, 0, 1):
                session.next_paragraph()
                # Deferred: the outer move is still being applied
                assert session.position == Position(0, 0, 1)

        session.subscribe(observer)
        session.next_word()

        assert seen == [Position(0, 0, 1), Position(1, 0, 0)]
        assert session.position == Position(1, 0, 0)

    def test_failing_observer_does_not_block_move(self, make_session):
        session = make_session()
        seen = []

        def broken(change):
            raise ValueError("bad observer")

        session.subscribe(broken)
        session.subscribe(seen.append)
        session.next_word()

        assert session.position == Position(0, 0, 1)
        assert len(seen) == 1


class TestLoadDocument:
    """Tests for replacing the document."""

    def test_load_resets_and_publishes(self, make_session):
        session = make_session()
        session.next_paragraph()
        changes = []
        session.subscribe(changes.append)

        session.load_document("Brand new text.", document_id="new", title="New")

        assert session.position == Position(0, 0, 0)
        assert session.document_id == "new"
        assert session.document.title == "New"
        assert changes[-1].previous is None
        assert changes[-1].source is ChangeSource.LOAD

    def test_load_book_content(self, make_session):
        session = make_session()
        book = BookContent(
            text="Page one.\n\nPage two.",
            title="Paged",
            format="pdf",
            pages=[PageMetadata(1, 0, 0), PageMetadata(2, 1, 1)],
        )

        session.load_document(book, document_id="paged")

        assert session.document.paragraph_count == 2
        assert session.document.page_for_paragraph(1) == 2

    def test_load_prepared_document(self, make_session):
        session = make_session()
        document = Document.from_text("Prepared.")

        session.load_document(document)
        assert session.document is document

    def test_load_turns_drivers_off(self, make_session, clock):
        session = make_session()

        async def scenario():
            session.set_autoscroll(True)
            session.load_document("Another text entirely.")
            assert not session.autoscroll.enabled

            session.set_speech(True)
            session.load_document("Yet another text.")
            assert not session.speech.enabled
            await clock.advance(5.0)

        asyncio.run(scenario())
        assert session.position == Position(0, 0, 0)
        assert session.mode == "manual"


class TestResume:
    """Tests for restoring saved progress on load."""

    def test_resume_restores_saved_position(self, make_session, sample_text, tmp_path: Path):
        store = ProgressStore(tmp_path)
        store.save(ReadingProgress(Position(1, 1, 2), time.time(), "book"))
        session = make_session(progress_store=store)

        session.load_document(sample_text, document_id="book", resume=True)

        assert session.position == Position(1, 1, 2)

    def test_resume_is_clamped(self, make_session, tmp_path: Path):
        """Progress saved against a longer text is clamped to the new one."""
        store = ProgressStore(tmp_path)
        store.save(ReadingProgress(Position(40, 3, 9), time.time(), "book"))
        session = make_session(progress_store=store)

        session.load_document("Short text. Two sentences.", document_id="book", resume=True)

        assert session.position == Position(0, 1, 1)

    def test_corrupt_progress_starts_fresh(self, make_session, sample_text, tmp_path: Path):
        store = ProgressStore(tmp_path)
        store.path_for("book").write_text("{not json")
        session = make_session(progress_store=store)

        session.load_document(sample_text, document_id="book", resume=True)

        assert session.position == Position(0, 0, 0)

    def test_changes_are_persisted(self, make_session, sample_text, tmp_path: Path):
        store = ProgressStore(tmp_path)
        session = make_session(progress_store=store)
        session.load_document(sample_text, document_id="book")

        session.next_sentence()

        saved = store.load("book")
        assert saved.position == Position(0, 1, 0)
        assert saved.document_id == "book"


class TestModeExclusion:
    """Autoscroll and speech are never active together."""

    def test_enabling_speech_disables_autoscroll(self, make_session, clock):
        session = make_session()

        async def scenario():
            session.set_autoscroll(True)
            session.set_speech(True)
            assert session.mode == "speech"
            assert not session.autoscroll.enabled

            # Autoscroll ticks no longer land
            await clock.advance(2.0)
            session.shutdown()

        asyncio.run(scenario())
        assert session.position == Position(0, 0, 0)
        assert session.autoscroll.ticks == 0

    def test_enabling_autoscroll_disables_speech(self, make_session, backend, clock):
        session = make_session()

        async def scenario():
            session.set_speech(True)
            await clock.settle()
            session.set_autoscroll(True)
            assert session.mode == "autoscroll"
            assert not session.speech.enabled

            # The abandoned speech request cannot advance the position
            backend.complete()
            await clock.settle()
            assert session.position == Position(0, 0, 0)

            await clock.advance(0.3)
            session.shutdown()

        asyncio.run(scenario())
        assert session.position == Position(0, 0, 1)

    def test_driver_enable_turns_speech_off(self, make_session, backend, clock):
        """Enabling the autoscroll driver directly still stops speech."""
        session = make_session()

        async def scenario():
            session.set_speech(True)
            await clock.settle()
            session.autoscroll.enable()
            assert not session.speech.enabled
            assert session.mode == "autoscroll"

            # The pending sentence cannot land after the switch
            backend.complete()
            await clock.advance(0.3)
            session.shutdown()

        asyncio.run(scenario())
        assert session.position == Position(0, 0, 1)

    def test_driver_enable_turns_autoscroll_off(self, make_session, clock):
        session = make_session()

        async def scenario():
            session.autoscroll.toggle()
            session.speech.toggle()
            assert not session.autoscroll.enabled
            assert session.mode == "speech"

            await clock.advance(1.0)
            session.shutdown()

        asyncio.run(scenario())
        assert session.position == Position(0, 0, 0)
        assert session.autoscroll.ticks == 0

    def test_ticks_rejected_while_other_driver_active(self, make_session, clock):
        """A current autoscroll ticket is dropped while speech is on."""
        session = make_session()

        async def scenario():
            session.set_autoscroll(True)
            ticket = session.autoscroll._epoch
            # Force both flags on to check the session-side guard alone
            session.speech._enabled = True
            session.submit(Move(MoveKind.NEXT_WORD, ChangeSource.AUTOSCROLL, ticket=ticket))
            session.speech._enabled = False
            session.shutdown()

        asyncio.run(scenario())
        assert session.position == Position(0, 0, 0)

    def test_toggle_speech(self, make_session, clock):
        session = make_session()

        async def scenario():
            assert session.toggle_speech() is True
            assert session.toggle_speech() is False

        asyncio.run(scenario())
        assert session.mode == "manual"

    def test_disable_speech_with_voice_keeps_voice(self, make_session):
        session = make_session()
        session.set_speech(False, voice="am_adam")
        assert session.speech.voice == "am_adam"


class TestPageNavigation:
    """Tests for moving by source page."""

    @staticmethod
    def _paged_session(make_session, sample_text):
        session = make_session()
        session.load_document(BookContent(
            text=sample_text,
            title="Paged",
            format="pdf",
            pages=[PageMetadata(1, 0, 0), PageMetadata(3, 1, 1), PageMetadata(4, 2, 2)],
        ))
        return session

    def test_go_to_page(self, make_session, sample_text):
        session = self._paged_session(make_session, sample_text)
        changes = []
        session.subscribe(changes.append)

        assert session.go_to_page(3) == Position(1, 0, 0)
        assert session.current_page == 3
        assert session.page_count == 3
        assert changes[-1].source is ChangeSource.USER

    def test_go_to_page_is_clamped(self, make_session, sample_text):
        """Missing page numbers resolve to the next page with text, or the last one."""
        session = self._paged_session(make_session, sample_text)

        assert session.go_to_page(2) == Position(1, 0, 0)
        assert session.go_to_page(99) == Position(2, 0, 0)
        assert session.go_to_page(-5) == Position(0, 0, 0)

    def test_next_and_prev_page(self, make_session, sample_text):
        session = self._paged_session(make_session, sample_text)

        assert session.next_page() == Position(1, 0, 0)
        assert session.next_page() == Position(2, 0, 0)
        assert session.next_page() == Position(2, 0, 0)
        assert session.prev_page() == Position(1, 0, 0)

    def test_prev_page_from_inside_a_page(self, make_session, sample_text):
        """Previous page goes to the start of the page before, not of the current one."""
        session = self._paged_session(make_session, sample_text)
        session.jump_to(Position(1, 1, 2))

        assert session.prev_page() == Position(0, 0, 0)
        assert session.prev_page() == Position(0, 0, 0)

    def test_text_without_pages_stays_put(self, make_session):
        session = make_session()
        session.next_word()

        assert session.page_count == 0
        assert session.current_page is None
        assert session.go_to_page(2) == Position(0, 0, 1)
        assert session.next_page() == Position(0, 0, 1)
