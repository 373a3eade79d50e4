from typing import List, Sequence

from rag.errors import ClientInputError
from rag.schemas import ClinicalRequest, EvidenceItem

DEFAULT_MAX_CONTEXT_CHARS = 8000
MAX_PROMPT_EVIDENCE = 3
NO_DEMOGRAPHICS = "No demographics provided"

SYSTEM_PROMPT = """You are DoctorHelp, a clinical decision-support assistant for licensed clinicians.
- ROLE: You are an AI assistant that provides clinical decision support, not definitive diagnoses
- TASK: Provide a prioritized differential diagnosis (top 3-5 conditions) with:
  * Probability estimates (0-1 scale)
  * Brief clinical reasoning for each condition
  * Recommended diagnostic tests to confirm/rule out each condition
  * Citations from medical literature when available
- FORMAT: Return ONLY valid JSON with this exact structure:
{
  "diagnoses": [
    {
      "name": "string",
      "probability": number (0-1),
      "reasoning": "string",
      "recommended_tests": ["string"],
      "citations": ["string"]
    }
  ],
  "recommendations": ["string"]
}
- CONSTRAINTS:
  * This is not a medical device and cannot provide definitive diagnoses
  * For licensed healthcare professionals only
  * Always include probability estimates
  * Prioritize based on clinical likelihood and urgency
  * Include relevant risk factors from patient demographics
"""


def select_case_text(req: ClinicalRequest) -> str:
    case = req.caseNotes or req.symptoms
    if not case:
        raise ClientInputError("Provide caseNotes or symptoms")
    return case if isinstance(case, str) else _as_text(case)


def truncate_case(text: str, max_chars) -> str:
    # Plain character cap; not token-aware.
    if isinstance(max_chars, bool) or not isinstance(max_chars, int) or max_chars < 0:
        max_chars = DEFAULT_MAX_CONTEXT_CHARS
    return text[:max_chars]


def _as_text(value) -> str:
    if isinstance(value, (list, tuple)):
        return ",".join("" if v is None else _as_text(v) for v in value)
    return str(value)


def render_patient_context(req: ClinicalRequest) -> str:
    bits: List[str] = []
    for label, value in (
        ("Age", req.age),
        ("Sex", req.sex),
        ("Allergies", req.allergies),
        ("Medications", req.medications),
        ("Duration", req.duration),
    ):
        if value:
            bits.append(f"{label}: {_as_text(value)}")
    return " | ".join(bits) if bits else NO_DEMOGRAPHICS


def render_evidence_block(evidence: Sequence[EvidenceItem]) -> str:
    if not evidence:
        return ""
    lines = [f"{i}. {e.title}: {e.snippet}" for i, e in enumerate(evidence[:MAX_PROMPT_EVIDENCE], 1)]
    return "\nRelevant clinical evidence to consider:\n" + "\n".join(lines) + "\n"


def build_user_prompt(patient_context: str, case_text: str, evidence_block: str) -> str:
    return f"""Patient Context:
{patient_context}

Case Presentation:
{case_text}

{evidence_block}

Please provide your clinical analysis in the specified JSON format:"""


def build_prompt(patient_context: str, case_text: str, evidence: Sequence[EvidenceItem] = ()) -> str:
    # Single flat text: the completion endpoint gets one user message, no system role.
    user = build_user_prompt(patient_context, case_text, render_evidence_block(evidence))
    return f"{SYSTEM_PROMPT}\n\n{user}"
