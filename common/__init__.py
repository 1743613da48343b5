"""
Common functionality shared by the note format plugins and the command line.

This package contains modules for logging, configuration, file validation,
command line argument parsing, the format plugin registry and the data records
produced by the parsers.
"""
