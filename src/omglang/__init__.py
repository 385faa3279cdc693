"""omglang: parser and static analyzer for the OMG pattern language."""

__version__ = "0.1.0"
