"""
Core types shared by every layer.
"""
