"""Tests for event recording."""

import logging
import threading

from takeout_assembler.reconciler.events import EventCode, EventRecorder, file_ref


def test_file_ref():
    assert file_ref("takeout-001.zip", "Takeout/IMG_1.jpg") == "takeout-001.zip:Takeout/IMG_1.jpg"


class TestEventRecorder:
    """Tests for EventRecorder."""

    def test_counts(self):
        recorder = EventRecorder()
        recorder.record(EventCode.EMITTED, "t:a.jpg")
        recorder.record(EventCode.EMITTED, "t:b.jpg")
        recorder.record(EventCode.ERROR, "t:c.jpg", reason="cannot read metadata")

        assert recorder.count(EventCode.EMITTED) == 2
        assert recorder.count(EventCode.ERROR) == 1
        assert recorder.count(EventCode.DISCARDED_TRASHED) == 0

    def test_summary_lists_every_code(self):
        recorder = EventRecorder()
        recorder.record(EventCode.DISCOVERED_IMAGE, "t:a.jpg")

        summary = recorder.summary()

        assert list(summary) == [code.value for code in EventCode]
        assert summary["discovered_image"] == 1
        assert summary["emitted"] == 0

    def test_log_levels(self, caplog):
        recorder = EventRecorder()

        with caplog.at_level(logging.DEBUG, logger="takeout_assembler.reconciler.events"):
            recorder.record(EventCode.EMITTED, "t:a.jpg", kind="none")
            recorder.record(EventCode.ANALYSIS_MISSING_ASSOCIATED_METADATA, "t:b.jpg")
            recorder.record(EventCode.ERROR, "t:c.jpg")

        levels = [r.levelno for r in caplog.records]
        assert levels == [logging.DEBUG, logging.WARNING, logging.ERROR]
        assert caplog.records[0].extra_fields == {"event": "emitted", "file": "t:a.jpg", "kind": "none"}

    def test_report(self, caplog):
        recorder = EventRecorder()
        recorder.record(EventCode.EMITTED, "t:a.jpg")

        with caplog.at_level(logging.INFO, logger="takeout_assembler.reconciler.events"):
            recorder.report()

        assert caplog.records[-1].extra_fields == {"summary": {"emitted": 1}}

    def test_thread_safe(self):
        recorder = EventRecorder()

        def work():
            for _ in range(500):
                recorder.record(EventCode.DISCOVERED_IMAGE, "t:a.jpg")

        threads = [threading.Thread(target=work) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert recorder.count(EventCode.DISCOVERED_IMAGE) == 2000
