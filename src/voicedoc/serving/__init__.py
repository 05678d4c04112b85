"""
Serving — FastAPI application for document upload and scoped search.

This module exposes the ingestion service and the similarity search engine
over HTTP so the surrounding voice/chat application can call them.
"""
