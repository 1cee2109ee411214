"""Receiver implementations.

``rtlsdr`` needs librtlsdr and PortAudio at import time, so it is imported
only when real hardware is requested.
"""
