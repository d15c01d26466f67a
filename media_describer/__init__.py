"""
Media Describer

Pulls images from a Google Drive folder, mirrors them to Cloud Storage and
generates descriptions using Gemini on Vertex AI, producing a CSV report.
"""

__version__ = "1.0.0"
