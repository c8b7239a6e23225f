import math

import pytest
import requests

from embeddings.hash_embedder import HashEmbedder
from embeddings.ollama_embedder import OllamaEmbedder


def test_hash_embedder_is_deterministic_and_normalized():
    emb = HashEmbedder(dimension=64)
    a = emb.embed("hello world")

    assert emb.dimension == 64
    assert len(a) == 64
    assert a == emb.embed("hello world")
    assert a != emb.embed("hello there")
    assert math.isclose(sum(v * v for v in a), 1.0, rel_tol=1e-9)


def test_hash_embedder_batch_preserves_order():
    emb = HashEmbedder(dimension=16)
    texts = ["one", "two", "three"]
    assert emb.embed_batch(texts) == [emb.embed(t) for t in texts]
    assert emb.embed_batch([]) == []


def test_hash_embedder_falls_back_to_default_dimension():
    assert HashEmbedder(dimension=0).dimension == 1536


class _Response:
    def __init__(self, payload, status=200):
        self._payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"status {self.status_code}")

    def json(self):
        return self._payload


class _Session:
    def __init__(self, dimension, fail_first=0):
        self.headers = {}
        self.calls = []
        self.dimension = dimension
        self.fail_first = fail_first

    def post(self, url, json, timeout):
        self.calls.append(json["input"])
        if self.fail_first:
            self.fail_first -= 1
            raise requests.ConnectionError("connection refused")
        vectors = [[float(len(t))] * self.dimension for t in json["input"]]
        return _Response({"embeddings": vectors})


def test_ollama_embedder_batches_requests_in_order():
    session = _Session(dimension=4)
    emb = OllamaEmbedder(
        model_name="nomic-embed-text", dimension=4, batch_size=2, session=session
    )

    vectors = emb.embed_batch(["a", "bb", "ccc"])

    assert session.calls == [["a", "bb"], ["ccc"]]
    assert vectors == [[1.0] * 4, [2.0] * 4, [3.0] * 4]
    assert emb.embed("dddd") == [4.0] * 4


def test_ollama_embedder_rejects_wrong_dimension():
    emb = OllamaEmbedder(dimension=8, session=_Session(dimension=4))
    with pytest.raises(ValueError):
        emb.embed_batch(["a"])


def test_ollama_embedder_retries_transport_errors(monkeypatch):
    monkeypatch.setattr(OllamaEmbedder._post.retry, "sleep", lambda seconds: None)
    session = _Session(dimension=2, fail_first=2)
    emb = OllamaEmbedder(dimension=2, session=session)

    assert emb.embed("abc") == [3.0, 3.0]
    assert len(session.calls) == 3
