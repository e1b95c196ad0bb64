"""Core orchestration package.

Architectural role:
    Exposes the per-turn consultation pipeline that sits between the API/CLI
    adapters and the lower-level subsystems (intent routing, request
    composition, conversation state, and the generative gateway).

Composition:
    - `engine`: the `ConsultationOrchestrator` running one pipeline per turn.
    - `routing_types`: `Route` and the provider-agnostic `GatewayRequest`.
    - `gateway`: the backend contract (`GenerativeGateway`, `ConsultResult`).
    - `response_normalizer`: gateway output -> conversation turns.
    - `errors`: exception taxonomy shared by every layer.

Determinism and side effects:
    Package import itself is deterministic and side-effect free.
"""
