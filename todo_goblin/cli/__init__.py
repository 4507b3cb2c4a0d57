"""Command-line subcommands for tgbl."""
