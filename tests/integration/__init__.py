"""
Integration tests for cbuild.

These tests run complete builds through real child processes, using a
shell-script stand-in for the compiler and linker.
"""
