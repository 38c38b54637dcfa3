"""Click commands for the execman CLI."""
