"""
Redirect file for Streamlit Cloud compatibility.
Deployments that expect app.py as the entry point run the dashboard from
Welcome.py.
"""

import os
import sys

# Ensure the current directory is in the path
sys.path.insert(0, os.path.dirname(__file__))

import Welcome  # noqa: E402,F401
