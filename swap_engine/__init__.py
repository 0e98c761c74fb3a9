"""Cross-chain swap orchestration engine over the LI.FI routing service."""

__version__ = "0.1.0"
