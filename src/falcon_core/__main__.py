"""Run the falcon_core API server: ``python -m falcon_core``."""

import uvicorn

from falcon_core.config import ServerSettings


def main() -> None:
    settings = ServerSettings()
    uvicorn.run(
        "falcon_core.api.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    main()
