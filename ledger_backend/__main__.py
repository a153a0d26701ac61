"""Daemon entry point: `python -m ledger_backend`."""

import uvicorn

from ledger_backend.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "ledger_backend.main:app",
        host=settings.server_address,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
