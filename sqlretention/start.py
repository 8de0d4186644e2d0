"""SQL retention policy service launcher: starts Uvicorn."""
from __future__ import annotations
import os


def main() -> None:
    # Start the ASGI server
    import uvicorn

    uvicorn.run(
        "sqlretention.main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
    )


if __name__ == "__main__":
    main()
