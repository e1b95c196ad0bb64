"""NLP utilities for turn routing.

Module scope:
- Keyword-based intent routing (`intent_router`).

Determinism profile:
- Fully deterministic rule logic; no model-backed scoring.
"""
