"""VisionaryAI eyewear try-on and stylist consultation service."""
