"""Sphinx configuration for the Reputation Server documentation.

API pages are generated by sphinx-autoapi from the package docstrings;
``index.md`` is the only hand-written page.
"""

import logging
import sys
import tomllib
from pathlib import Path

project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root / "src"))


def get_version_from_pyproject() -> str:
    """Read the release from pyproject.toml."""
    with open(project_root / "pyproject.toml", "rb") as f:
        return tomllib.load(f)["project"]["version"]


# -- Project information -----------------------------------------------------
project = "Reputation Server"
copyright = "2026, Reputation Server contributors"
author = "Reputation Server contributors"
release = version = get_version_from_pyproject()

# -- General configuration ---------------------------------------------------
extensions = [
    "autoapi.extension",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
    "sphinx.ext.intersphinx",
    "sphinx_autodoc_typehints",
    "myst_parser",
]
source_suffix = {".rst": "restructuredtext", ".md": "markdown"}
root_doc = "index"
exclude_patterns = []

# -- AutoAPI -----------------------------------------------------------------
autoapi_type = "python"
autoapi_dirs = [str(project_root / "src" / "reputation_server")]
autoapi_options = ["members", "undoc-members", "show-inheritance", "show-module-summary"]
autoapi_ignore = ["*/__pycache__/*"]
autoapi_member_order = "bysource"
autoapi_python_class_content = "both"

# -- Docstrings (Google style) -------------------------------------------------
napoleon_google_docstring = True
napoleon_numpy_docstring = False
napoleon_attr_annotations = True
autodoc_typehints = "description"
autodoc_typehints_description_target = "documented"

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "fastapi": ("https://fastapi.tiangolo.com", None),
}

# -- HTML output -------------------------------------------------------------
html_theme = "sphinx_rtd_theme"
html_theme_options = {"navigation_depth": 3, "collapse_navigation": False}

myst_enable_extensions = ["colon_fence", "deflist"]
myst_heading_anchors = 3
suppress_warnings = ["myst.header"]


class FilterDuplicateObjectWarnings(logging.Filter):
    """Drop 'duplicate object description' warnings.

    Dataclass fields are documented twice (class docstring ``Attributes:`` and
    the generated ``__init__``) because ``autoapi_python_class_content`` is
    ``"both"``.
    """

    def filter(self, record):
        return "duplicate object description" not in str(record.msg)


def setup(app):
    logging.getLogger("sphinx").addFilter(FilterDuplicateObjectWarnings())
