from dataclasses import dataclass, field
import os

from .models import ChunkingConfig, SentenceChunkingConfig, TokenChunkingConfig


@dataclass
class ChunkingServiceConfig:
    data_dir: str = "data/projects"
    chunking: ChunkingConfig = field(default_factory=ChunkingConfig)

    @classmethod
    def from_env(cls) -> "ChunkingServiceConfig":
        def _int(name: str, default: int) -> int:
            value = os.environ.get(name)
            return int(value) if value else default

        sentence_defaults = SentenceChunkingConfig()
        token_defaults = TokenChunkingConfig()
        return cls(
            data_dir=os.environ.get("PROJECTS_DATA_DIR", cls.data_dir),
            chunking=ChunkingConfig(
                sentence=SentenceChunkingConfig(
                    window_size=_int("CHUNK_WINDOW_SIZE", sentence_defaults.window_size),
                    overlap=_int("CHUNK_WINDOW_OVERLAP", sentence_defaults.overlap),
                    min_chunk_chars=_int("CHUNK_MIN_CHARS", sentence_defaults.min_chunk_chars),
                ),
                token=TokenChunkingConfig(
                    target_tokens=_int("TOKEN_CHUNK_TARGET", token_defaults.target_tokens),
                    max_tokens=_int("TOKEN_CHUNK_MAX", token_defaults.max_tokens),
                    min_tokens=_int("TOKEN_CHUNK_MIN", token_defaults.min_tokens),
                    overlap_tokens=_int("TOKEN_CHUNK_OVERLAP", token_defaults.overlap_tokens),
                    chars_per_token=_int("CHARS_PER_TOKEN", token_defaults.chars_per_token),
                ),
            ),
        )
