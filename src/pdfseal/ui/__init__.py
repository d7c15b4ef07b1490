"""User interfaces: the command-line tool."""
