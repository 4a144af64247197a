"""
Version 1 of the API, mounted under ``settings.api_prefix``.
"""
