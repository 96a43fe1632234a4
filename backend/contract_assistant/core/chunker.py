import re
from typing import List

from contract_assistant.core.model_config import ANALYSIS_CONFIG

SENTENCE_BOUNDARY = re.compile(r'[.!?]+\s+')


def chunk_text(text: str, max_chunk_size: int = ANALYSIS_CONFIG["max_chunk_size"]) -> List[str]:
    """
    Split contract text into chunks of whole sentences.

    Sentences are packed greedily; a sentence longer than max_chunk_size
    becomes a chunk of its own rather than being cut.
    """
    if not text or not text.strip():
        return []

    chunks = []
    current_chunk = ""

    for sentence in SENTENCE_BOUNDARY.split(text):
        sentence = sentence.strip()
        if not sentence:
            continue

        if len(current_chunk + sentence) > max_chunk_size:
            if current_chunk:
                chunks.append(current_chunk.strip())
            current_chunk = sentence
        else:
            current_chunk += (" " if current_chunk else "") + sentence

    if current_chunk:
        chunks.append(current_chunk.strip())

    return chunks


def select_processable_chunks(chunks: List[str], max_full_chunks: int = ANALYSIS_CONFIG["max_full_chunks"]) -> List[str]:
    """Long contracts are sampled at the beginning, middle and end"""
    if len(chunks) > max_full_chunks:
        return [chunks[0], chunks[len(chunks) // 2], chunks[-1]]
    return list(chunks)
