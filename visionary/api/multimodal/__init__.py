"""Image input decoding used by the HTTP and CLI adapters."""
