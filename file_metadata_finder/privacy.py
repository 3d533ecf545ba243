import re

# --- Regex patterns ---
# 10 digits must stand alone; the spaced form matches wherever it appears.
NHS_RE = re.compile(r"(?<!\d)\d{10}(?!\d)|\d{3} \d{3} \d{4}")

# --- Redaction token ---
REDACTION_TOKEN = "[REDACTED]"


def detect_nhs_numbers(text: str) -> int:
    """Return how many NHS-number shaped identifiers appear in ``text``."""
    return len(NHS_RE.findall(text or ""))


def redact_text(text: str) -> str:
    """Replace every NHS-number shaped identifier with the redaction token.

    Substitution repeats until nothing changes: redacting a spaced number can
    leave a neighbouring 10-digit run standing alone (``1234567890123 456 7890``).
    """
    if not text:
        return ""
    while True:
        redacted = NHS_RE.sub(REDACTION_TOKEN, text)
        if redacted == text:
            return redacted
        text = redacted
