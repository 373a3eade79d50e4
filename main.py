import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rag.config import Settings
from rag.errors import ClientInputError, ModelOutputParseError, SchemaValidationError
from rag.llm import CompletionClient
from rag.responder import DiagnosisResponder
from rag.retriever import build_retriever
from rag.schemas import ClinicalRequest

# ───────────────── CONFIG
SETTINGS = Settings.from_env()

logging.basicConfig(level=SETTINGS.log_level)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # One provider client per process, shared read-only by every request.
    app.state.completion_client = CompletionClient.from_settings(SETTINGS)
    app.state.retriever = build_retriever(SETTINGS)
    logger.info(f"{SETTINGS.app_name} ready: model={SETTINGS.llm_model} evidence={SETTINGS.evidence_backend}")
    yield
    await app.state.completion_client.close()

# ───────────────── APP
app = FastAPI(title=SETTINGS.app_name, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], allow_methods=["*"], allow_headers=["*"], allow_credentials=True
)

def get_completion_client(request: Request) -> CompletionClient:
    return request.app.state.completion_client

def get_retriever(request: Request):
    return request.app.state.retriever

def get_responder(
    completion_client: CompletionClient = Depends(get_completion_client),
    retriever=Depends(get_retriever),
) -> DiagnosisResponder:
    return DiagnosisResponder(completion_client, retriever)

@app.get("/healthz")
def healthz():
    return {"status": "ok", "ts": datetime.now(timezone.utc).isoformat()}

@app.get("/api/env")
def read_env():
    return {
        "app": SETTINGS.app_name,
        "model": SETTINGS.llm_model,
        "evidence_backend": SETTINGS.evidence_backend,
    }

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Bodies that are not a JSON object (or not JSON at all) never carry usable case text.
    body = exc.body if isinstance(exc.body, dict) else {}
    if body.get("caseNotes") or body.get("symptoms"):
        message = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
    else:
        message = "Provide caseNotes or symptoms"
    logger.warning(f"Rejected diagnosis request: {message}")
    return JSONResponse(status_code=400, content={"success": False, "message": message})

# ───────────────── Diagnosis (LLM)
@app.post("/api/diagnosis/diagnose")
async def diagnose(
    body: Optional[ClinicalRequest] = None,
    responder: DiagnosisResponder = Depends(get_responder),
):
    try:
        data = await responder.generate(body or ClinicalRequest())
    except ClientInputError as e:
        logger.warning(f"Rejected diagnosis request: {e}")
        return JSONResponse(status_code=400, content={"success": False, "message": str(e)})
    except ModelOutputParseError as e:
        return JSONResponse(status_code=500, content={
            "success": False,
            "message": "Failed to parse model response as JSON",
            "rawResponse": e.raw,
        })
    except SchemaValidationError as e:
        return JSONResponse(status_code=422, content={
            "success": False,
            "message": "Model JSON failed schema validation",
            "errors": e.errors,
            "raw": e.parsed,
        })
    except Exception as e:
        logger.exception(f"{SETTINGS.app_name} API error: {e}")
        return JSONResponse(status_code=500, content={"success": False, "message": str(e)})
    return {"success": True, "data": data}

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=SETTINGS.port)
