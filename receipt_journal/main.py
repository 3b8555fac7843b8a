"""FastAPI backend for receipt journal entry derivation"""
import io
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Body, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from .config import EngineConfig, load_config
from .derivation import derive_journal_entry
from .errors import JournalValidationError
from .export import export_filename, journal_entry_to_csv
from .models import JournalEntry


logger = logging.getLogger("receipt-journal")
if not logger.handlers:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")


app = FastAPI(title="Receipt Journal", version="0.1.0")

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Loaded once on startup, read-only afterwards
engine_config: Optional[EngineConfig] = None


def get_engine_config() -> EngineConfig:
    global engine_config
    if engine_config is None:
        engine_config = load_config()
    return engine_config


@app.on_event("startup")
async def startup_event():
    """Load engine configuration on startup"""
    config = get_engine_config()
    logger.info(
        "Engine configured: VAT %s, providers %s",
        config.vat_rate,
        ", ".join(config.llm_providers) or "none",
    )


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    config = get_engine_config()
    status = {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "ollama_available": False,
        "gemini_available": bool(config.gemini_api_key),
    }

    # Check Ollama availability
    try:
        import ollama
        models = ollama.list()
        status["ollama_available"] = any(
            config.ollama_model in (model.get("model") or model.get("name") or "")
            for model in models.get("models", [])
        )
    except Exception as e:
        logger.debug("Ollama not reachable: %s", e)

    return status


@app.post("/api/journal-entries")
async def journal_entry_endpoint(ocr_data: Any = Body(...)):
    """Derive a journal entry from an OCR result"""
    try:
        result = await derive_journal_entry(ocr_data, get_engine_config())
    except JournalValidationError as e:
        logger.error("Journal entry derivation failed: %s", e)
        raise HTTPException(status_code=500, detail="Processing failed")
    except Exception as e:
        logger.exception("Unexpected error deriving journal entry: %s", e)
        raise HTTPException(status_code=500, detail="Processing failed")

    return {
        "success": True,
        "ocrData": ocr_data,
        "journalEntry": result["entry"].model_dump(mode="json"),
        "provider": result["provider"],
    }


@app.post("/api/journal-entries/export")
async def export_journal_entry_endpoint(entry: JournalEntry):
    """Export a journal entry to CSV"""
    csv_bytes = journal_entry_to_csv(entry)
    return StreamingResponse(
        io.BytesIO(csv_bytes),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={export_filename(entry)}"},
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
