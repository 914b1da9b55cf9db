"""
Upload services.
"""
