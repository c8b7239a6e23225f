from __future__ import annotations

import hashlib
from io import BytesIO
from pathlib import Path
from typing import List

import requests
from bs4 import BeautifulSoup
from pypdf import PdfReader
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from common.config import yaml_config
from common.logger import get_logger
from ingestion.cleaners import normalize_text
from ingestion.document_models import RepositoryFile

log = get_logger(__name__)

LANGUAGES = {
    ".py": "python",
    ".go": "go",
    ".js": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".java": "java",
    ".rs": "rust",
    ".rb": "ruby",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".md": "markdown",
    ".txt": "text",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".json": "json",
}

_SKIP_DIRS = {".git", "node_modules", "__pycache__", ".venv", "venv", "dist", "build"}


def detect_language(path: Path | str) -> str:
    return LANGUAGES.get(Path(path).suffix.lower(), "")


def discover_files(root: Path, allowed_exts: tuple[str, ...] | None = None) -> List[Path]:
    """
    Recursively find supported files, ignoring VCS and dependency folders.
    """
    exts = allowed_exts or yaml_config.indexer.allowed_exts
    paths: List[Path] = []
    for p in root.rglob("*"):
        if any(part in _SKIP_DIRS for part in p.relative_to(root).parts):
            continue
        if p.is_file() and p.suffix.lower() in exts:
            paths.append(p)
    return sorted(paths)


def load_repository_files(root: Path) -> List[RepositoryFile]:
    """Read a local checkout into RepositoryFile records with repo-relative paths."""
    out: List[RepositoryFile] = []
    for p in discover_files(root):
        out.append(
            RepositoryFile(
                path=p.relative_to(root).as_posix(),
                content=p.read_text(encoding="utf-8", errors="ignore"),
                language=detect_language(p),
            )
        )
    return out


def load_file(path: Path) -> str:
    """Text of a local file; PDFs are extracted page by page."""
    if path.suffix.lower() == ".pdf":
        return _extract_pdf_text(path.read_bytes())
    return path.read_text(encoding="utf-8", errors="ignore")


def _cache_path(url: str) -> Path:
    key = hashlib.sha1(url.encode("utf-8")).hexdigest()
    return yaml_config.app.cache_dir / f"{key}.text"


@retry(
    retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)
def _fetch(url: str) -> requests.Response:
    """Download URL with retry logic."""
    resp = requests.get(
        url,
        timeout=yaml_config.app.timeout,
        headers={"User-Agent": yaml_config.app.user_agent},
    )
    resp.raise_for_status()
    return resp


def load_from_url(url: str, use_cache: bool = True) -> str:
    """
    Fetch a URL and reduce it to plain text. HTML loses scripts and styles, PDFs are
    extracted. Errors propagate to the caller.
    """
    cache = _cache_path(url)
    if use_cache and cache.exists():
        log.info("Cache hit for %s", url)
        return cache.read_text(encoding="utf-8")

    resp = _fetch(url)
    if url.lower().endswith(".pdf") or resp.headers.get("Content-Type", "").startswith(
        "application/pdf"
    ):
        text = _extract_pdf_text(resp.content)
    else:
        text = _extract_html_text(resp.text)
    text = normalize_text(text)

    if use_cache:
        cache.parent.mkdir(parents=True, exist_ok=True)
        cache.write_text(text, encoding="utf-8")
    return text


def _extract_pdf_text(content: bytes) -> str:
    reader = PdfReader(BytesIO(content))
    pages = [normalize_text(page.extract_text() or "") for page in reader.pages]
    return "\n\n".join(p for p in pages if p)


def _extract_html_text(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.extract()
    lines = [t.strip() for t in soup.get_text("\n").splitlines()]
    # keep empty lines so paragraphs survive for the chunker
    return "\n".join(lines)
