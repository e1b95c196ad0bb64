"""Generative backend access package.

Architectural role:
    Provides provider configuration, request-payload construction, and the HTTP
    transport used to reach the Gemini backend.

Module split:
    - `provider_config`: environment-driven model and credential configuration.
    - `client`: Gemini REST transport and shared payload/response helpers.
    - `service`: grounded consultation and the `GeminiGateway` facade.
"""
