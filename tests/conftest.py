from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

import main
from rag.config import Settings
from rag.llm import Completion, TokenUsage
from rag.schemas import EvidenceItem


class FakeCompletionClient:
    model = "fake-model"

    def __init__(self, text: str = "", usage=None, exc: Exception = None):
        self.text = text
        self.usage = usage
        self.exc = exc
        self.calls = []

    async def complete(self, prompt, sampling):
        self.calls.append(SimpleNamespace(prompt=prompt, sampling=sampling))
        if self.exc is not None:
            raise self.exc
        return Completion(text=self.text, usage=self.usage)


class FakeRetriever:
    def __init__(self, items=None):
        self.items = list(items or [])
        self.queries = []

    async def fetch_evidence(self, query):
        self.queries.append(query)
        return list(self.items)


@pytest.fixture
def evidence_items():
    return [
        EvidenceItem(id="PMID:1", title="Stable angina review", snippet="Exertional chest pain", url="https://pubmed.ncbi.nlm.nih.gov/1/"),
        EvidenceItem(id="PMID:2", title="GERD mimics", snippet="Burning retrosternal pain", url="https://pubmed.ncbi.nlm.nih.gov/2/"),
        EvidenceItem(id="PMID:3", title="Costochondritis", snippet="Reproducible tenderness", url="https://pubmed.ncbi.nlm.nih.gov/3/"),
        EvidenceItem(id="PMID:4", title="Aortic dissection", snippet="Tearing pain", url="https://pubmed.ncbi.nlm.nih.gov/4/"),
    ]


@pytest.fixture
def fake_llm():
    return FakeCompletionClient(
        text='{"diagnoses":[{"name":"Stable angina","probability":0.6}],"recommendations":["Assess risk factors"]}',
        usage=TokenUsage(input_tokens=120, output_tokens=30, total_tokens=150),
    )


@pytest.fixture
def fake_retriever():
    return FakeRetriever()


@pytest.fixture
def client(fake_llm, fake_retriever):
    main.app.dependency_overrides[main.get_completion_client] = lambda: fake_llm
    main.app.dependency_overrides[main.get_retriever] = lambda: fake_retriever
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


@pytest.fixture
def make_settings():
    def _make(**overrides):
        base = dict(
            app_name="DoctorHelp", port=5000, llm_base_url="https://llm.example/v1", llm_model="m",
            llm_api_key="k", llm_max_tokens=None, llm_timeout_s=None, evidence_backend="none",
            evidence_max_items=5, ncbi_api_key="", ncbi_email="", ncbi_tool="DoctorHelp", log_level="INFO",
        )
        base.update(overrides)
        return Settings(**base)
    return _make
