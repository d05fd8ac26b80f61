"""Command-line interface for cm2intune."""
