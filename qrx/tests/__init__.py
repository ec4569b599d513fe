"""
QRx Test Suite

Run with: python -m pytest qrx/tests -v
Or: python -m unittest discover qrx/tests
"""
