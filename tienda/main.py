import logging

import uvicorn
from tienda.api.api_run import app
from tienda.utilities.config import load_settings


if __name__ == "__main__":
    settings = load_settings()
    logging.basicConfig(level=settings.log_level,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    local_url = f"http://localhost:{settings.app_port}"
    # Print a friendly message that points to the URL you can open in a browser
    print(f"Uvicorn running on {local_url} (backend: {settings.backend}, Press CTRL+C to quit)")
    uvicorn.run(app, host=settings.app_host, port=settings.app_port)
