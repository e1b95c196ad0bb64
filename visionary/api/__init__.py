"""VisionaryAI adapter package.

Architectural role:
- Defines the external interaction boundary for HTTP and CLI interfaces.
- Performs transport-level validation (image decoding, request schemas) and
  response shaping.
- Delegates every turn to `visionary.core.engine.ConsultationOrchestrator`.
"""
