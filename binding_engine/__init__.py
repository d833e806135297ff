"""
Service Binding Injection Engine

Pure, side-effect free logic that projects a backing service's secret into
schema-unknown application resources.
"""

__version__ = "0.1.0"
