# apps/wishcard/main.py
#
# Process entrypoint:  python -m apps.wishcard.main
# Binds 0.0.0.0:$PORT (default 3000) and serves apps.wishcard.app.main:app.

from __future__ import annotations

import uvicorn

from apps.wishcard.app.config import settings


def main() -> None:
    uvicorn.run(
        "apps.wishcard.app.main:app",
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
