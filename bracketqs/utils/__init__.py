# -*- coding: utf-8 -*-
"""Utility helpers for bracketqs callers."""
