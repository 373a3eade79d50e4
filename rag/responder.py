import logging
from dataclasses import asdict
from typing import List

from compliance.audit import audit_event
from rag.errors import ModelOutputParseError, SchemaValidationError
from rag.llm import CompletionClient, SamplingConfig
from rag.normalizer import normalize_model_output
from rag.prompts import build_prompt, render_patient_context, select_case_text, truncate_case
from rag.schemas import ClinicalRequest, EvidenceItem

logger = logging.getLogger(__name__)


class DiagnosisResponder:
    """Runs one request: evidence -> prompt -> completion -> validated payload."""

    def __init__(self, completion_client: CompletionClient, retriever):
        self.completion_client = completion_client
        self.retriever = retriever

    async def generate(self, req: ClinicalRequest) -> dict:
        case = select_case_text(req)
        base_case = truncate_case(case, req.maxContextChars)

        evidence: List[EvidenceItem] = []
        if req.useRag:
            evidence = await self.retriever.fetch_evidence(base_case)

        prompt = build_prompt(render_patient_context(req), base_case, evidence)
        sampling = SamplingConfig.from_request(req)

        completion = await self.completion_client.complete(prompt, sampling)

        audit = {
            "model": self.completion_client.model,
            "case_chars": len(base_case),
            "evidence_count": len(evidence),
            "use_rag": bool(req.useRag),
            "usage": asdict(completion.usage) if completion.usage else None,
        }
        try:
            payload = normalize_model_output(completion.text, evidence)
        except ModelOutputParseError as e:
            logger.error(f"JSON parse error. Raw model output: {e.raw}")
            audit_event("diagnosis.parse_error", audit)
            raise
        except SchemaValidationError as e:
            logger.error(f"Model JSON failed schema validation: {e.errors}")
            audit_event("diagnosis.schema_error", audit)
            raise

        audit_event("diagnosis.ok", {**audit, "diagnoses": len(payload["diagnoses"])})
        return payload
