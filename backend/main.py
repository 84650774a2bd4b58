"""Backend server entrypoint."""

from __future__ import annotations

import uvicorn

from shared import config


def main() -> None:
    uvicorn.run(
        "backend.api:app",
        host=config.server_host(),
        port=config.server_port(),
        log_level=config.log_level().lower(),
    )


if __name__ == "__main__":
    main()
