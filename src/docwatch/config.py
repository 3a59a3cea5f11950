import os
from dataclasses import dataclass
from dotenv import load_dotenv

# Load environment variables from a .env file
load_dotenv(override=True)

# --- API Keys ---
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")

# --- Base Paths ---
PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))

# --- Data Paths ---
DATA_DIR = os.getenv("DOCWATCH_DATA_DIR", os.path.join(os.getcwd(), "data"))
SNAPSHOT_DIR = os.path.join(DATA_DIR, "snapshots")
COLLECTION_NAME = os.getenv("DOCWATCH_COLLECTION", "site_embeddings")

# --- Models ---
EMBED_MODEL = os.getenv("EMBED_MODEL", "text-embedding-3-small")
ANSWER_MODEL = os.getenv("ANSWER_MODEL", "gpt-4.1")
TEMPERATURE = float(os.getenv("TEMPERATURE", "0.2"))

# --- Retrieval / history ---
HISTORY_LENGTH = int(os.getenv("HISTORY_LENGTH", "10"))
NUM_TOP_FILES = int(os.getenv("NUM_TOP_FILES", "10"))
NUM_TOP_LINKS = int(os.getenv("NUM_TOP_LINKS", "10"))

# --- Chunking ---
CHUNK_WORDS = int(os.getenv("CHUNK_WORDS", "200"))
MIN_CHUNK_CHARS = int(os.getenv("MIN_CHUNK_CHARS", "20"))

# --- Network ---
FETCH_TIMEOUT_SECONDS = float(os.getenv("FETCH_TIMEOUT_SECONDS", "30"))
PROVIDER_TIMEOUT_SECONDS = float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "60"))
EMBED_MAX_TRIES = int(os.getenv("EMBED_MAX_TRIES", "3"))
MAX_CONCURRENT_INGESTS = int(os.getenv("MAX_CONCURRENT_INGESTS", "4"))
USER_AGENT = os.getenv("DOCWATCH_USER_AGENT", "Mozilla/5.0 (Windows NT 10.0; Win64; x64)")

# --- Prompt Configuration ---
PROMPT_PATH = os.getenv("DOCWATCH_PROMPT_PATH", os.path.join(PACKAGE_DIR, "prompts.yml"))


@dataclass(frozen=True)
class SysParams:
    """Tunables handed to the pipeline; override per caller with dataclasses.replace."""

    model_name: str = ANSWER_MODEL
    history_length: int = HISTORY_LENGTH
    temperature: float = TEMPERATURE
    num_top_files: int = NUM_TOP_FILES
    num_top_links: int = NUM_TOP_LINKS
    chunk_words: int = CHUNK_WORDS
    min_chunk_chars: int = MIN_CHUNK_CHARS
    fetch_timeout: float = FETCH_TIMEOUT_SECONDS
    provider_timeout: float = PROVIDER_TIMEOUT_SECONDS
    max_concurrent_ingests: int = MAX_CONCURRENT_INGESTS

    @classmethod
    def from_env(cls) -> "SysParams":
        return cls()
