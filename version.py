"""Release version for EDMC-OpSec."""

__version__ = "1.2.0"
