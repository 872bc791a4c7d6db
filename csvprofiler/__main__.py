"""Allow ``python -m csvprofiler``."""

from csvprofiler.cli import main

main()
