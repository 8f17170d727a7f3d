"""TextMate grammar loading, compiling and selector matching for code highlighting."""

__version__ = "0.2.48"