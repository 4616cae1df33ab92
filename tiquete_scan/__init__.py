"""Tiquete Scan.

OCR assist for fruit-purchase receipts ("tiquetes"): OpenCV/numpy image
conditioning ahead of Tesseract, and heuristic extraction of date, ticket
number, net weight, unit price and company from the recognized text.
"""

__version__ = "1.0.0"
