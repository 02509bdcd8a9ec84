"""
Sphinx configuration file for mediashrink documentation.
"""

import os
import sys

# Add source directory to path for autodoc
sys.path.insert(0, os.path.abspath("../src"))

from mediashrink import __version__

# Project information
project = "mediashrink"
copyright = "2026, mediashrink contributors"
author = "mediashrink contributors"
release = __version__
version = ".".join(__version__.split(".")[:2])

# General configuration
extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.viewcode",
    "sphinx.ext.napoleon",
    "sphinx.ext.intersphinx",
    "myst_parser",
]

source_suffix = {
    ".rst": "restructuredtext",
    ".md": "markdown",
}

exclude_patterns = ["_build", "Thumbs.db", ".DS_Store"]

# HTML output options
html_theme = "sphinx_rtd_theme"
html_title = f"{project} {release}"

html_theme_options = {
    "prev_next_buttons_location": "bottom",
    "collapse_navigation": True,
    "navigation_depth": 3,
}

# Autodoc configuration
autodoc_default_options = {
    "members": True,
    "show-inheritance": True,
}
autodoc_member_order = "bysource"

# Google-style docstrings
napoleon_google_docstring = True
napoleon_numpy_docstring = False

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
}

myst_enable_extensions = [
    "colon_fence",
]
