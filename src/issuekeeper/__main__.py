"""
IssueKeeper package entry point.

Allows running issuekeeper as a module:
    python -m issuekeeper
"""

from issuekeeper.cli import main

if __name__ == "__main__":
    main()
