"""Lumachor: context-augmented LLM chat API."""
