"""Allows execution via: python -m dirdigest"""

from dirdigest.cli import main

if __name__ == "__main__":
    main()
