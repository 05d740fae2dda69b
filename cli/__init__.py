"""Command line entry points for digitscope."""
