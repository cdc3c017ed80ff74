from phonochunk.config.chunker_config import ChunkerConfig

__all__ = ["ChunkerConfig"]
