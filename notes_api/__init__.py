"""
Client and batch importer for the notes service.
"""
