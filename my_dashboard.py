"""Streamlit entry point for the focus dashboard.

Run with:

    streamlit run my_dashboard.py

State is kept in ``~/.focusdash/state.json`` unless ``FOCUSDASH_DATA_DIR``
points somewhere else (a ``.env`` file next to this script works too).
"""
from __future__ import annotations

from focusdash.streamlit_app import main

main()
