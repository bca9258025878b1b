"""Streamlit surface for the OurGlass engine."""

from .main import main

__all__ = ["main"]
