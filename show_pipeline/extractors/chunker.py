"""Split oversized documents into start/middle/end windows for extraction."""


def chunk_document(text: str, max_chunk_size: int = 8000, max_chunks: int = 5) -> list[str]:
    """Return non-overlapping windows of at most `max_chunk_size` chars.

    Always the start; the middle once the text is over 2x the size; the end
    once it is over 3x. Capped at `max_chunks`.
    """
    if not text or max_chunks <= 0:
        return []

    length = len(text)
    chunks = [text[:max_chunk_size]]

    if length > max_chunk_size * 2:
        # Never overlaps the start window
        middle_start = max(length // 2 - max_chunk_size // 2, max_chunk_size)
        chunks.append(text[middle_start:middle_start + max_chunk_size])

    if length > max_chunk_size * 3:
        chunks.append(text[-max_chunk_size:])

    return chunks[:max_chunks]
