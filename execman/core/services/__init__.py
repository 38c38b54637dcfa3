"""Services — release lookup, artifact handling, symlink resolution."""
