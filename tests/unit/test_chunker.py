"""Tests for document chunking."""

from show_pipeline.extractors import chunk_document


class TestChunker:
    def test_short_document_single_chunk(self):
        assert chunk_document("a" * 100, max_chunk_size=8000) == ["a" * 100]

    def test_empty_document(self):
        assert chunk_document("") == []

    def test_start_window_only_up_to_twice_the_size(self):
        text = "x" * 16000
        chunks = chunk_document(text, max_chunk_size=8000)
        assert len(chunks) == 1
        assert chunks[0] == text[:8000]

    def test_middle_window_never_overlaps_start(self):
        text = "".join(str(i % 10) for i in range(20000))
        chunks = chunk_document(text, max_chunk_size=8000)
        assert len(chunks) == 2
        assert chunks[1] == text[8000:16000]

    def test_start_middle_end(self):
        text = "".join(chr(65 + i % 26) for i in range(30000))
        chunks = chunk_document(text, max_chunk_size=8000)
        assert len(chunks) == 3
        assert chunks[0] == text[:8000]
        assert chunks[1] == text[11000:19000]
        assert chunks[2] == text[-8000:]
        assert all(len(c) <= 8000 for c in chunks)

    def test_max_chunks_cap(self):
        chunks = chunk_document("y" * 30000, max_chunk_size=8000, max_chunks=2)
        assert len(chunks) == 2
