"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: pagination/__init__.py.
"""

from .controller import LazyLoadingController, paginate_list

__all__ = ["LazyLoadingController", "paginate_list"]
