from __future__ import annotations
import secrets

def _tok(nbytes: int = 12) -> str:
    return secrets.token_urlsafe(nbytes)

def new_run_id() -> str:
    return f"run_{_tok()}"

def new_batch_id() -> str:
    return f"batch_{_tok()}"
