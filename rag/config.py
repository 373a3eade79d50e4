import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

GEMINI_OPENAI_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


def _optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else None


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else None


@dataclass(frozen=True)
class Settings:
    app_name: str
    port: int
    llm_base_url: str
    llm_model: str
    llm_api_key: str
    llm_max_tokens: Optional[int]
    llm_timeout_s: Optional[float]
    evidence_backend: str
    evidence_max_items: int
    ncbi_api_key: str
    ncbi_email: str
    ncbi_tool: str
    log_level: str

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        backend = os.getenv("EVIDENCE_BACKEND", "none").strip().lower()
        if backend not in {"none", "pubmed"}:
            backend = "none"

        return cls(
            app_name=os.getenv("APP_NAME", "DoctorHelp"),
            port=int(os.getenv("PORT", "5000")),
            llm_base_url=os.getenv("LLM_BASE_URL", GEMINI_OPENAI_URL).strip(),
            llm_model=os.getenv("LLM_MODEL", "gemini-2.5-flash"),
            llm_api_key=os.getenv("LLM_API_KEY") or os.getenv("GEMINI_API_KEY") or "EMPTY",
            llm_max_tokens=_optional_int("LLM_MAX_TOKENS"),
            llm_timeout_s=_optional_float("LLM_TIMEOUT_S"),
            evidence_backend=backend,
            evidence_max_items=int(os.getenv("EVIDENCE_MAX_ITEMS", "5")),
            ncbi_api_key=os.getenv("NCBI_API_KEY", "").strip(),
            ncbi_email=os.getenv("NCBI_EMAIL", "").strip(),
            ncbi_tool=os.getenv("NCBI_TOOL", "DoctorHelp").strip(),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
