"""versemint - commit-reveal minting of phrase and verse tokens."""

__version__ = "0.1.0"
