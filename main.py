"""Main entry point for the Concierge API server."""

import os

from dotenv import load_dotenv

# Load environment variables from .env file BEFORE importing concierge modules
load_dotenv()

# Now import concierge modules (they may need env vars)
from concierge_api import create_app  # noqa: E402

# Load config path from environment or use default
config_path = os.getenv("CONCIERGE_CONFIG_PATH", "configs/concierge.yaml")

# Create app with configuration
app = create_app(config_path=config_path)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "false").lower() == "true",
    )
