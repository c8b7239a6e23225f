import re
import unicodedata


def normalize_text(s: str) -> str:
    """Tidy extracted prose while keeping blank lines, which mark paragraph boundaries."""
    s = unicodedata.normalize("NFKC", s)
    s = s.replace("\u00a0", " ").replace("\r\n", "\n")
    s = re.sub(r"[ \t]+", " ", s)
    s = re.sub(r"[ \t]+\n", "\n", s)
    s = re.sub(r"\n{3,}", "\n\n", s)
    return s.strip()
