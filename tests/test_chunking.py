"""Tests for document chunking."""

import pytest

from ragcontext import (
    Chunk,
    Document,
    EmptyInputError,
    FixedSizeChunker,
    WordChunker,
    chunk_text,
    create_chunker,
)


class TestChunkText:
    """Tests for character window splitting."""

    @pytest.mark.parametrize("length", [1, 9, 10, 11, 37, 100])
    @pytest.mark.parametrize("size,overlap", [(10, 0), (10, 3), (10, 9), (4, 1), (1, 0)])
    def test_windows_cover_text_with_exact_overlap(self, length, size, overlap):
        """Windows cover [0, L) and consecutive windows share `overlap` chars."""
        text = "".join(chr(ord("a") + i % 26) for i in range(length))
        chunks = chunk_text(text, size, overlap)

        assert chunks
        assert all(len(c) <= size for c in chunks)

        start = 0
        rebuilt = chunks[0]
        for prev, chunk in zip(chunks, chunks[1:]):
            start += size - overlap
            assert text[start:start + len(chunk)] == chunk
            if overlap:
                assert prev[-overlap:] == chunk[:overlap]
            rebuilt += chunk[overlap:]
        assert rebuilt == text

    def test_short_text_is_single_chunk(self):
        """Text shorter than the window yields one chunk."""
        assert chunk_text("hello", 10, 2) == ["hello"]

    def test_empty_text(self):
        """Empty text yields no windows."""
        assert chunk_text("", 10, 2) == []

    @pytest.mark.parametrize("size,overlap", [(10, 10), (10, 11), (0, 0), (10, -1)])
    def test_invalid_parameters(self, size, overlap):
        """Overlap must be below the chunk size and not negative."""
        with pytest.raises(ValueError):
            chunk_text("some text", size, overlap)


class TestFixedSizeChunker:
    """Tests for FixedSizeChunker."""

    def test_chunk_ids_and_positions(self):
        """Chunks are numbered by position within the document."""
        chunker = FixedSizeChunker(chunk_size=10, overlap=2)
        chunks = chunker.chunk(Document(id="doc-1", text="a" * 25))

        assert [c.id for c in chunks] == ["doc-1-chunk-0", "doc-1-chunk-1", "doc-1-chunk-2"]
        assert [c.position for c in chunks] == [0, 1, 2]

    def test_supplied_chunks_used_verbatim(self):
        """Pre-built chunks bypass splitting."""
        supplied = [
            Chunk(id="custom-2", text="Chunk two", position=7),
            Chunk(id="custom-1", text="Chunk one", position=3),
        ]
        chunker = FixedSizeChunker(chunk_size=4, overlap=1)
        chunks = chunker.chunk(Document(id="doc-1", text="", chunks=supplied))

        assert chunks == supplied

    def test_empty_document_raises(self):
        """A document without text or chunks is rejected."""
        chunker = FixedSizeChunker()
        with pytest.raises(EmptyInputError):
            chunker.chunk(Document(id="doc-1", text=""))


class TestWordChunker:
    """Tests for WordChunker."""

    def test_word_windows(self):
        """Windows count words and overlap by words."""
        chunker = WordChunker(chunk_size=3, overlap=1)
        chunks = chunker.chunk(Document(id="d", text="one two  three four\nfive six"))

        assert [c.text for c in chunks] == ["one two three", "three four five", "five six"]

    def test_create_chunker(self):
        """Units select the chunker implementation."""
        assert isinstance(create_chunker("words", 10, 2), WordChunker)
        assert type(create_chunker("characters", 10, 2)) is FixedSizeChunker
        with pytest.raises(ValueError):
            create_chunker("sentences", 10, 2)
