"""Process exit codes of the ``pycre`` CLI."""

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_NO_ANSWERS = 2
