from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "config.yaml"


class AppConfig(BaseModel):
    persist_dir: Path = Path("data/chroma")
    cache_dir: Path = Path("data/cache")
    log_level: str = "INFO"

    timeout: int = 10
    user_agent: str = "ContextRetrievalEngine/1.0"


class ChunkingConfig(BaseModel):
    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)

    @model_validator(mode="after")
    def _overlap_below_size(self) -> "ChunkingConfig":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        return self


class EmbeddingConfig(BaseModel):
    provider: str = Field(default="hash", pattern="^(hash|huggingface|ollama)$")
    model_name: str = "sentence-transformers/all-MiniLM-L6-v2"
    dimension: int = Field(default=1536, gt=0)
    base_url: str = "http://localhost:11434"
    batch_size: int = Field(default=32, gt=0)


class VectorStoreConfig(BaseModel):
    backend: str = Field(default="memory", pattern="^(memory|chroma)$")
    collection_prefix: str = "kb_"


class RetrievalConfig(BaseModel):
    default_limit: int = Field(default=10, gt=0)
    # merge-then-truncate unless enabled
    sort_merged_results: bool = False


class IndexerConfig(BaseModel):
    max_file_chars: int = Field(default=100_000, gt=0)
    allowed_exts: tuple[str, ...] = (
        ".py", ".go", ".js", ".ts", ".tsx", ".java", ".rs", ".rb",
        ".c", ".h", ".cpp", ".md", ".txt", ".yaml", ".yml", ".toml", ".json",
    )
    show_progress: bool = True


class GlobalYAMLConfig(BaseModel):
    app: AppConfig = Field(default_factory=AppConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    vectorstore: VectorStoreConfig = Field(default_factory=VectorStoreConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    indexer: IndexerConfig = Field(default_factory=IndexerConfig)


def load_yaml_config(path: Path | None = None) -> GlobalYAMLConfig:
    """
    Load and validate the YAML config. A missing file gives the built-in defaults.
    """
    path = Path(path or os.getenv("KB_CONFIG_PATH") or DEFAULT_CONFIG_PATH)
    if not path.exists():
        return GlobalYAMLConfig()
    with open(path, "r") as f:
        raw = yaml.safe_load(f) or {}
    return GlobalYAMLConfig(**raw)


class Secrets(BaseSettings):
    embedding_api_key: str | None = Field(default=None)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


yaml_config = load_yaml_config()
secrets = Secrets()
