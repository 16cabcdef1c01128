"""
GapScope API Module
===================

FastAPI application exposing the analysis pipeline.
"""
