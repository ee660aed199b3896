"""Allow running the CLI with ``python -m retdec.cli``."""

from . import main

main()
