from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pathlib import Path
import json
import os

app = FastAPI(title="Mock Aggregator Server", version="1.0.0")
# Support both local development and Docker
DATA_DIR = Path("/aggregator_stub") if os.path.exists("/aggregator_stub") else Path(__file__).resolve().parents[1] / "aggregator_stub"


def _load(name: str, not_found: str):
    file = DATA_DIR / name
    if not file.exists():
        raise HTTPException(status_code=404, detail=not_found)
    return JSONResponse(content=json.loads(file.read_text()))


@app.get("/health")
def health(): return {"status": "ok"}

@app.get("/aggregator/accounts/{account_id}")
def get_account(account_id: str):
    return _load(f"account_{account_id}.json", "account not found")

@app.get("/aggregator/transactions")
def get_transactions(account_id: str):
    return _load(f"transactions_{account_id}.json", "account not found")
