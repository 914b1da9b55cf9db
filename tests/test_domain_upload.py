"""
Tests for upload domain models.
"""

import pytest

from lexicon_upload.core.domain.upload import (
    ChunkRange, UploadArtifact, UploadedChunks, UploadMetadata, UploadProgress, UploadState
)


class TestUploadedChunks:
    """Test the confirmed-chunk set."""

    def test_add_is_idempotent(self):
        chunks = UploadedChunks(5)

        assert chunks.add(2) is True
        assert chunks.add(2) is False
        assert len(chunks) == 1
        assert 2 in chunks

    def test_add_out_of_range(self):
        chunks = UploadedChunks(3)

        with pytest.raises(ValueError):
            chunks.add(3)
        with pytest.raises(ValueError):
            chunks.add(-1)

    def test_add_complement(self):
        """Test reconciliation with a missing list of 3 and 4 out of 7."""
        chunks = UploadedChunks(7)
        chunks.add_complement([3, 4])

        assert list(chunks) == [0, 1, 2, 5, 6]
        assert chunks.missing() == [3, 4]
        assert not chunks.is_complete

    def test_complement_never_removes(self):
        chunks = UploadedChunks(3, [0, 1])
        chunks.add_complement([0, 1, 2])

        assert chunks.snapshot() == frozenset({0, 1})

    def test_fill_and_clear(self):
        chunks = UploadedChunks(4, [1])

        chunks.fill()
        assert chunks.is_complete
        assert chunks.missing() == []

        chunks.clear()
        assert len(chunks) == 0
        assert chunks.missing() == [0, 1, 2, 3]

    def test_reset_rebinds_total(self):
        chunks = UploadedChunks(2, [0, 1])
        chunks.reset(5)

        assert chunks.total == 5
        assert len(chunks) == 0

    def test_snapshot_is_immutable_copy(self):
        chunks = UploadedChunks(3, [0])
        snapshot = chunks.snapshot()
        chunks.add(1)

        assert snapshot == frozenset({0})


class TestUploadModels:
    """Test metadata, ranges and progress."""

    def test_metadata_requires_title(self):
        UploadMetadata(title="Talk").validate()

        with pytest.raises(ValueError):
            UploadMetadata(title="   ").validate()

    def test_metadata_defaults(self):
        metadata = UploadMetadata(title="Talk")

        assert metadata.media_type == "video"
        assert metadata.is_public is False
        assert metadata.content_type is None

    def test_chunk_range_length(self):
        assert ChunkRange(index=2, start=20, end=25).length == 5

    def test_progress_fraction(self):
        progress = UploadProgress(
            state=UploadState.TRANSFERRING,
            chunks_uploaded=1,
            total_chunks=4,
            bytes_transferred=10,
            total_bytes=35
        )

        assert progress.fraction == 0.25
        assert progress.percentage == 25.0
        assert progress.to_dict()["state"] == "transferring"
        assert progress.to_dict()["eta_seconds"] is None

    def test_progress_without_chunks(self):
        progress = UploadProgress(UploadState.UNINITIALIZED, 0, 0, 0, 0)
        assert progress.fraction == 0.0

    @pytest.mark.parametrize("state,terminal", [
        (UploadState.COMPLETED, True),
        (UploadState.CANCELLED, True),
        (UploadState.FAILED, False),
        (UploadState.PAUSED, False),
    ])
    def test_terminal_states(self, state, terminal):
        assert state.is_terminal is terminal

    def test_active_states(self):
        assert UploadState.TRANSFERRING.is_active
        assert not UploadState.PAUSED.is_active

    def test_artifact_media_id(self):
        assert UploadArtifact("u1", {"id": 12}).media_id == 12
        assert UploadArtifact("u1").media_id is None
