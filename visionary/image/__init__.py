"""Image editing adapter package.

Scope:
    Provides the virtual try-on operation of the generative gateway
    (`service.synthesize_image`).

Non-goals:
    - No resizing, re-encoding, or other pixel processing.
    - No temporary-file creation or cleanup responsibilities.
"""
