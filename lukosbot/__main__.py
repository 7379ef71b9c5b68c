"""Run lukosbot with ``python -m lukosbot``."""

from .command import main

main()
