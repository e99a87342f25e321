"""LLM and image generation clients."""
