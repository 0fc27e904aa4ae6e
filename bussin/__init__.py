"""bussin — manage externally sourced developer and security tools."""

__version__ = "1.1.0"
