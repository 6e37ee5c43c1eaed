"""Main entry point for the local Policy Service API server."""

import os

from dotenv import load_dotenv

# Load environment variables from .env file BEFORE importing policy modules
load_dotenv()

# Now import policy modules (they may need env vars)
from policy_api import create_app  # noqa: E402
from policy_config import load_settings_from_env  # noqa: E402

# Create app with settings from POLICY_SERVICE_* variables
app = create_app(settings=load_settings_from_env())

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
