"""Allow ``python -m md2word_mcp``."""

from .cli import main

main()
