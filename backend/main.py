import os

import uvicorn

if __name__ == "__main__":
    # reload only during development
    is_dev = os.getenv("OMS_ENV", "development") == "development"

    uvicorn.run(
        "oms.main:app",
        host=os.getenv("OMS_HOST", "127.0.0.1"),
        port=int(os.getenv("OMS_PORT", "8000")),
        reload=is_dev,
        log_level="info"
    )
