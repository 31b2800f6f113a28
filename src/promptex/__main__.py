"""Entry point: python -m promptex <command>"""

from promptex.cli import main

if __name__ == "__main__":
    main()
