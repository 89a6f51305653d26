"""
REST API for the STT relay.

Provides a single FastAPI application serving:
- The browser demo page (GET /)
- The favicon redirect (/favicon.ico)
- Audio transcription (POST on any path)
"""
