"""Docs config."""

import os
import sys

# add module to path
sys.path.insert(0, os.path.abspath(".."))

import pylandcore as plc  # noqa: E402

# -- Project information -----------------------------------------------------
project = "pylandcore"
author = "pylandcore developers"

__version__ = plc.__version__
version = __version__
release = __version__

# -- General configuration ---------------------------------------------------
extensions = [
    "m2r2",
    "sphinx.ext.napoleon",
    "sphinx.ext.autodoc",
    "sphinx.ext.viewcode",
    "sphinx.ext.imgmath",
]

# The master toctree document.
master_doc = "index"

# The name of the Pygments (syntax highlighting) style to use.
pygments_style = "sphinx"

# -- Options for HTML output -------------------------------------------------
html_theme = "pydata_sphinx_theme"
html_theme_options = {"pygment_light_style": "tango"}

# exclude patterns from sphinx-build
exclude_patterns = ["_build", "Thumbs.db", ".DS_Store", "**.ipynb_checkpoints"]

# -- Options for manual page output ------------------------------------------
man_pages = [(master_doc, "pylandcore", "pylandcore documentation", [author], 1)]
