"""Dev entry point: python main.py (production: uvicorn tapreview.main:app)."""
import os

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "tapreview.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("ENVIRONMENT", "development") == "development",
    )
