import hashlib
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger("uvicorn.error")


def token_fingerprint(token: Optional[str]) -> str:
    """Provide a stable, low-leak token identifier for logs."""
    if not token:
        return "<empty>"
    digest = hashlib.sha256(token.encode("utf-8")).hexdigest()[:12]
    return f"len={len(token)} sha256={digest} head={token[:4]}"


def notify_observer(
    observer: Optional[Callable[..., Any]], kind: str, *args: Any
) -> None:
    """Call an optional observation callback, never letting it fail the exchange."""
    if observer is None:
        return
    try:
        observer(*args)
    except Exception as e:
        logger.warning(f"[Observer] {kind} logger raised {type(e).__name__}: {e}", exc_info=True)
