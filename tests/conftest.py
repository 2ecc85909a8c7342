import asyncio
import re

import numpy as np
import pytest

from rulebook_rag.core.exception import EmbeddingServiceError
from rulebook_rag.ingestion.embedder import BaseEmbedder

VOCAB = ["penalty", "yards", "foul", "timeout", "field", "goal", "ball", "x"]

RULEBOOK_TEXT = (
    "Section 1. Kickoff\n"
    "The ball is placed on the field at the 35 yard line.\n\n"
    "Section 2. Penalties\n"
    "X penalty: 5 yards.\n"
    "Holding foul penalty: 10 yards.\n\n"
    "Section 3. Timeouts\n"
    "Each team has three timeout calls per half.\n"
)


class KeywordEmbedder(BaseEmbedder):
    """Bag-of-words vectors over a tiny vocabulary; counts provider calls."""

    def __init__(self, fail_times: int = 0):
        self.fail_times = fail_times
        self.calls = 0

    def embed_texts_sync(self, texts):
        self.calls += 1
        if self.fail_times > 0:
            self.fail_times -= 1
            raise EmbeddingServiceError("embedding provider unreachable")
        return np.array([self.vector(t) for t in texts], dtype=np.float32)

    @staticmethod
    def vector(text):
        words = re.findall(r"[a-z]+", text.lower())
        return [float(words.count(w)) for w in VOCAB]


class SlowEmbedder(KeywordEmbedder):
    async def embed_texts(self, texts):
        await asyncio.sleep(0.05)
        return self.embed_texts_sync(texts)


class EchoLLM:
    """Echoes the context section of the system prompt back as the answer."""

    def __init__(self):
        self.calls = []

    async def agenerate_chat(self, messages, temperature=0.0):
        self.calls.append((messages, temperature))
        system = messages[0]["content"]
        return system.split("----------------\n", 1)[1]


class FailingLLM:
    def __init__(self, error):
        self.error = error

    async def agenerate_chat(self, messages, temperature=0.0):
        raise self.error


@pytest.fixture
def rulebook_file(tmp_path):
    path = tmp_path / "westin_rulebook.txt"
    path.write_text(RULEBOOK_TEXT, encoding="utf-8")
    return path
