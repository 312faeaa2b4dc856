import logging

import uvicorn

from mealcart.api.api_run import app
from mealcart.utilities import config


if __name__ == "__main__":
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host = config.APP_HOST
    port = config.APP_PORT
    # Print a friendly message that points to the URL the API is served on
    print(f"Uvicorn running on http://localhost:{port} (Press CTRL+C to quit)")
    uvicorn.run(app, host=host, port=port, log_level=config.LOG_LEVEL.lower())
