"""
Bank Ledger Service Entry Point

Starts the FastAPI server with host and port taken from LEDGER_* settings.
"""

from .api import run_server


if __name__ == "__main__":
    run_server()
