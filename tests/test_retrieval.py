import asyncio

import numpy as np
import pytest
import requests

from rulebook_rag.core.config import Settings
from rulebook_rag.core.exception import EmbeddingDimensionError, EmbeddingServiceError
from rulebook_rag.ingestion import embedder as embedder_module
from rulebook_rag.ingestion.chunker import Passage
from rulebook_rag.ingestion.embedder import HFInferenceEmbedder, LocalEmbedder, get_embedder, to_embedding_matrix
from rulebook_rag.retrieval.retriever import Retriever
from rulebook_rag.retrieval.vector_store import RulebookIndex, build_index, query_index

from conftest import KeywordEmbedder

PASSAGES = [
    Passage("Penalty of 5 yards.", 0, 0),
    Passage("Each team gets one timeout on the field.", 15, 1),
    Passage("Penalty for a foul.", 50, 2),
]


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


def build(passages=PASSAGES, embedder=None):
    embedder = embedder or KeywordEmbedder()
    return asyncio.run(build_index(passages, embedder)), embedder


def test_retrieval_pipeline():
    index, embedder = build()
    retriever = Retriever(embedder, top_k=4)

    res = asyncio.run(retriever.retrieve_topk(index, "What is the penalty?", top_k=2))

    # passages 0 and 2 score the same; original order wins
    assert [p.index for p, _ in res] == [0, 2]
    assert res[0][1] == pytest.approx(res[1][1])


def test_retrieval_orders_by_descending_similarity():
    index, embedder = build()

    res = asyncio.run(query_index(index, embedder, "timeout on the field", top_k=3))
    scores = [score for _, score in res]

    assert res[0][0].index == 1
    assert scores == sorted(scores, reverse=True)


def test_retrieval_clamps_k_to_index_size():
    index, embedder = build()

    for k in (1, 2, 3, 10):
        res = asyncio.run(query_index(index, embedder, "penalty", top_k=k))
        assert len(res) == min(k, len(PASSAGES))


def test_retrieval_rejects_non_positive_k():
    index, embedder = build()

    with pytest.raises(ValueError):
        asyncio.run(query_index(index, embedder, "penalty", top_k=0))


def test_retrieve_joins_context_with_blank_line():
    index, embedder = build()
    retriever = Retriever(embedder, top_k=2)

    context = asyncio.run(retriever.retrieve(index, "penalty"))

    assert context == "Penalty of 5 yards.\n\nPenalty for a foul."


def test_query_dimension_mismatch():
    index, _ = build()

    with pytest.raises(EmbeddingDimensionError):
        index.search(np.ones(3, dtype=np.float32), top_k=1)


def test_empty_index_skips_provider():
    index, embedder = build(passages=[])

    assert len(index) == 0
    assert asyncio.run(query_index(index, embedder, "penalty", top_k=4)) == []
    assert embedder.calls == 0


def test_build_fails_without_partial_index():
    embedder = KeywordEmbedder(fail_times=1)

    with pytest.raises(EmbeddingServiceError):
        asyncio.run(build_index(PASSAGES, embedder))


def test_build_rejects_vector_count_mismatch():
    with pytest.raises(EmbeddingServiceError):
        RulebookIndex(PASSAGES, np.ones((2, 4), dtype=np.float32))


def test_index_is_read_only():
    index, _ = build()

    with pytest.raises(ValueError):
        index.vectors[0, 0] = 42.0


@pytest.mark.parametrize(
    "raw",
    [
        {"error": "Model is loading"},
        [[0.1, 0.2]],
        [[0.1, 0.2], [0.1]],
        [[0.1, "a"], [0.1, 0.2]],
        [[], []],
        [[0.1, float("nan")], [0.1, 0.2]],
    ],
)
def test_malformed_embeddings_rejected(raw):
    with pytest.raises(EmbeddingServiceError):
        to_embedding_matrix(raw, expected_count=2)


def test_hf_embedder_batches_requests(monkeypatch):
    calls = []

    def fake_post(url, headers=None, json=None, timeout=None):
        calls.append((url, headers, json))
        return FakeResponse(payload=[[1.0, 0.0, 0.0] for _ in json["inputs"]])

    monkeypatch.setattr(embedder_module.requests, "post", fake_post)
    embedder = HFInferenceEmbedder(api_key="secret", model_name="org/model", base_url="https://hf.test/models", batch_size=2)

    matrix = asyncio.run(embedder.embed_texts(["a", "b", "c"]))

    assert matrix.shape == (3, 3)
    assert [len(c[2]["inputs"]) for c in calls] == [2, 1]
    assert calls[0][0] == "https://hf.test/models/org/model/pipeline/feature-extraction"
    assert calls[0][1]["Authorization"] == "Bearer secret"


def test_hf_embedder_http_error(monkeypatch):
    monkeypatch.setattr(
        embedder_module.requests, "post", lambda *a, **kw: FakeResponse(503, text="unavailable")
    )
    embedder = HFInferenceEmbedder(api_key="secret")

    with pytest.raises(EmbeddingServiceError, match="503"):
        asyncio.run(embedder.embed_query("penalty"))


def test_hf_embedder_unreachable(monkeypatch):
    def fake_post(*args, **kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(embedder_module.requests, "post", fake_post)
    embedder = HFInferenceEmbedder(api_key="secret")

    with pytest.raises(EmbeddingServiceError, match="connection refused"):
        asyncio.run(embedder.embed_texts(["penalty"]))


class FakeSentenceTransformer:
    def __init__(self, model_name, fail=False):
        self.model_name = model_name
        self.fail = fail

    def encode(self, texts, batch_size=32, show_progress_bar=False):
        if self.fail:
            raise RuntimeError("CUDA out of memory")
        return np.array([[float(len(t)), 1.0, 0.0] for t in texts], dtype=np.float64)


def test_local_backend_selected_from_settings(monkeypatch):
    monkeypatch.setattr("sentence_transformers.SentenceTransformer", FakeSentenceTransformer)
    settings = Settings(EMBEDDING_BACKEND="local", EMBEDDING_MODEL="fake/model", HF_API_KEY="key", _env_file=None)

    embedder = get_embedder(settings)

    assert isinstance(embedder, LocalEmbedder)
    matrix = asyncio.run(embedder.embed_texts(["penalty", "foul"]))
    assert matrix.shape == (2, 3)
    assert matrix.dtype == np.float32


def test_api_backend_selected_by_default():
    settings = Settings(HF_API_KEY="key", _env_file=None)

    assert isinstance(get_embedder(settings), HFInferenceEmbedder)


def test_local_backend_encode_failure(monkeypatch):
    monkeypatch.setattr(
        "sentence_transformers.SentenceTransformer",
        lambda name: FakeSentenceTransformer(name, fail=True),
    )
    embedder = LocalEmbedder("fake/model")

    with pytest.raises(EmbeddingServiceError, match="out of memory"):
        asyncio.run(embedder.embed_texts(["penalty"]))


def test_hf_embedder_inconsistent_batch_dimensions(monkeypatch):
    widths = iter([3, 4])

    def fake_post(url, headers=None, json=None, timeout=None):
        width = next(widths)
        return FakeResponse(payload=[[1.0] * width for _ in json["inputs"]])

    monkeypatch.setattr(embedder_module.requests, "post", fake_post)
    embedder = HFInferenceEmbedder(api_key="secret", batch_size=2)

    with pytest.raises(EmbeddingServiceError, match="Inconsistent"):
        asyncio.run(embedder.embed_texts(["a", "b", "c"]))
