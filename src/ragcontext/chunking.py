"""Document chunking strategies."""

from .base import BaseChunker
from .document import Chunk, Document
from .exceptions import EmptyInputError


def _window_starts(length: int, chunk_size: int, overlap: int) -> list[int]:
    """Start offsets of overlapping windows covering ``[0, length)``."""
    step = chunk_size - overlap
    starts = [0]
    while starts[-1] + chunk_size < length:
        starts.append(starts[-1] + step)
    return starts


def _validate(chunk_size: int, overlap: int) -> None:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if overlap < 0:
        raise ValueError("Overlap must not be negative")
    if overlap >= chunk_size:
        raise ValueError("Overlap must be less than chunk_size")


def chunk_text(text: str, chunk_size: int = 512, overlap: int = 50) -> list[str]:
    """Split text into overlapping character windows.

    Every window is at most ``chunk_size`` characters and consecutive windows
    share exactly ``overlap`` characters. The last window ends at the end of
    the text and may be shorter.
    """
    _validate(chunk_size, overlap)
    if not text:
        return []
    return [text[start:start + chunk_size] for start in _window_starts(len(text), chunk_size, overlap)]


class FixedSizeChunker(BaseChunker):
    """Chunk documents into fixed-size character windows with overlap."""

    unit = "characters"

    def __init__(
        self,
        chunk_size: int = 512,
        overlap: int = 50,
    ):
        """Initialize the fixed-size chunker.

        Args:
            chunk_size: Maximum characters per chunk
            overlap: Number of characters shared by consecutive chunks
        """
        _validate(chunk_size, overlap)

        self.chunk_size = chunk_size
        self.overlap = overlap

    def chunk(self, document: Document) -> list[Chunk]:
        """Split document into fixed-size chunks."""
        if document.chunks:
            return list(document.chunks)
        if not document.text:
            raise EmptyInputError(document.id)

        return [
            Chunk(
                id=f"{document.id}-chunk-{index}",
                text=text,
                position=index,
                metadata={"chunker": self.unit},
            )
            for index, text in enumerate(self._split(document.text))
        ]

    def _split(self, text: str) -> list[str]:
        return chunk_text(text, self.chunk_size, self.overlap)


class WordChunker(FixedSizeChunker):
    """Chunk documents into windows of whitespace-separated words.

    Sizes and overlap count words rather than characters. Words in a window
    are re-joined with single spaces.
    """

    unit = "words"

    def _split(self, text: str) -> list[str]:
        words = text.split()
        if not words:
            # whitespace-only text still yields one chunk
            return [text]

        starts = _window_starts(len(words), self.chunk_size, self.overlap)
        return [" ".join(words[start:start + self.chunk_size]) for start in starts]


CHUNKERS: dict[str, type[FixedSizeChunker]] = {
    "characters": FixedSizeChunker,
    "words": WordChunker,
}


def create_chunker(unit: str = "characters", chunk_size: int = 512, overlap: int = 50) -> FixedSizeChunker:
    """Create a chunker for the given unit ("characters" or "words")."""
    try:
        chunker_cls = CHUNKERS[unit]
    except KeyError:
        raise ValueError(f"Unknown chunk unit: {unit}") from None
    return chunker_cls(chunk_size=chunk_size, overlap=overlap)
