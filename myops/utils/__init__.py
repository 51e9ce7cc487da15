"""Utility helpers shared by the myops packages.

This file makes the ``utils`` directory a proper package so that modules can
be imported as ``myops.utils.<module>``.
"""
__all__: list[str] = []
