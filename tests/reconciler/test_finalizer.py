"""Tests for the finalizer lifecycle."""

from conftest import FINALIZER, make_record

from issuekeeper.reconciler.finalizer import Finalizer


class TestFinalizer:
    def test_add_when_absent(self):
        record = make_record()
        finalizer = Finalizer(FINALIZER)

        assert finalizer.add(record) is True
        assert finalizer.is_present(record)
        assert record.metadata.finalizers == [FINALIZER]

    def test_add_when_present_is_noop(self):
        record = make_record(finalizers=[FINALIZER])

        assert Finalizer(FINALIZER).add(record) is False
        assert record.metadata.finalizers == [FINALIZER]

    def test_remove_keeps_other_finalizers(self):
        record = make_record(finalizers=["example.com/other", FINALIZER])

        assert Finalizer(FINALIZER).remove(record) is True
        assert record.metadata.finalizers == ["example.com/other"]

    def test_remove_when_absent_is_noop(self):
        record = make_record()

        assert Finalizer(FINALIZER).remove(record) is False
        assert not Finalizer(FINALIZER).is_present(record)
