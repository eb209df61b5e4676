"""Run the transfer service: python -m file_transfers [config.yaml]"""

import sys

from file_transfers.main import run

if __name__ == "__main__":
    run(sys.argv[1] if len(sys.argv) > 1 else None)
