"""Command line interface for onchaincounting."""
