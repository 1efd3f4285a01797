"""
NodeSync - Module Entry Point.

Allows running nodesync as a module:
    python -m nodesync -p 1 nodes.txt
"""

import sys

from nodesync.cli import main

if __name__ == '__main__':
    sys.exit(main())
