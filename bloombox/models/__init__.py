"""
Filter metadata models
"""
