# rsvp_service/utils/pii.py

# =================================================================================
# 🛡️ PII helpers for logs
# =================================================================================

from typing import Optional


def mask_email(addr: Optional[str]) -> str:
    """Masks an email for logs: 'john@example.com' -> 'jo***@example.com'."""
    if not addr:
        return "<no-email>"
    addr = addr.strip()
    if "@" not in addr or len(addr) < 3:
        return addr[:2] + "***"
    name, dom = addr.split("@", 1)
    return name[:2] + "***@" + dom
