"""Allow ``python -m hyprsock``."""

from .client import main

main()
