"""Prompting package.

Contains deterministic request-construction helpers used by the core
orchestration layer:
- `prompt_builder`: instruction templates, canned replies, preset styles.
- `request_composer`: route-specific `GatewayRequest` assembly.

It does not perform routing, state mutation, or model invocation.
"""
