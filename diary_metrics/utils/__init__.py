"""
Utilities: logging and YAML configuration
"""
