"""Polaris Export

Export projects, branches, users and role assignments from a Coverity on
Polaris tenant to JSON and CSV files, and upload edited project properties.
"""

__version__ = '0.1.0'
