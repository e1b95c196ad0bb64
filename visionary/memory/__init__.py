"""Session state package.

Architectural role:
    Groups the stateful pieces of a consultation:
    - `session_models`: immutable turn/image records and the `LookState`.
    - `conversation_manager`: the per-session single-writer state manager.

No persistence happens here; sessions live in process memory only.
"""
