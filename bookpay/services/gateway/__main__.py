"""Run the gateway with uvicorn: `python -m bookpay.services.gateway`."""

import uvicorn

from bookpay.common.config import settings


if __name__ == "__main__":
    uvicorn.run("bookpay.services.gateway.main:app", host="0.0.0.0", port=settings.port)
