"""
CLI Package for the Policy Engine.
"""
