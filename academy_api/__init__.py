"""
Top‑level package for the Martial Arts Academy API.

This file makes ``academy_api`` a Python package so that modules
within ``app`` can be imported using fully qualified names like
``academy_api.app.main``.

The package provides no public exports; all functionality lives in
submodules under ``app``.
"""

__all__ = []
