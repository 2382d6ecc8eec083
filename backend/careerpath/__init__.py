"""Career guidance backend: RIASEC quiz scoring, adaptive questioning and course matching."""

__version__ = "1.0.0"
