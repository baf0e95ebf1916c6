"""mcpscope command line."""
