"""Run the feature service: ``python -m feature_service``."""  # pragma: no cover

from __future__ import annotations  # pragma: no cover

import uvicorn  # pragma: no cover

from feature_service.app import create_app  # pragma: no cover
from feature_service.settings import FeatureServiceSettings  # pragma: no cover


def main() -> None:  # pragma: no cover
    """Entry-point for the feature service."""
    settings = FeatureServiceSettings()
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None, access_log=False)


if __name__ == "__main__":  # pragma: no cover
    main()
