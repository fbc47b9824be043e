"""FastAPI server for image analysis."""
