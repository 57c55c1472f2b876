"""
Support for writing scripts using the bqext library.

The expected usage of core bqext types is like:

    from bqext import Dataset

The scripting package is not part of the core library: it contains
optional helpers for scripts and for the command line tool, which
are expected to be imported as follows:

    from bqext.scripting import bq_logging

Unlike the core library, these helpers configure logging and turn
exceptions into exit codes.
"""
