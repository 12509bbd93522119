import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gastimator.config import settings
from gastimator.decoding.rlp_decoder import decode_transaction
from gastimator.models.error import (
    FailedToCalculateGasEstimate,
    GasExceedsLimit,
    GastimatorError,
    StringNotHex,
    TransactionDecodeError,
)
from gastimator.models.gas_usage import GasEstimateResponse
from gastimator.models.transaction import RawTransaction, Transaction
from gastimator.reconciler import Reconciler

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("gastimator.main")

_ERROR_STATUS = {
    GasExceedsLimit: 422,
    FailedToCalculateGasEstimate: 502,
    TransactionDecodeError: 400,
    StringNotHex: 400,
}


def _status_for(exc: GastimatorError) -> int:
    for exc_type, status in _ERROR_STATUS.items():
        if isinstance(exc, exc_type):
            return status
    return 500


def create_app(reconciler: Reconciler | None = None) -> FastAPI:
    app = FastAPI(title="Gastimator", version="0.1.0")
    app.state.reconciler = reconciler or Reconciler.from_settings(settings)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("INCOMING REQUEST: %s %s", request.method, request.url.path)
        response = await call_next(request)
        logger.info(
            "RESPONSE: %s %s -> %s",
            request.method,
            request.url.path,
            response.status_code,
        )
        return response

    @app.exception_handler(GastimatorError)
    async def handle_gastimator_error(request: Request, exc: GastimatorError):
        status_code = _status_for(exc)
        logger.warning("%s %s failed with %s: %s", request.method, request.url.path, exc.name, exc)
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    @app.post("/tx", response_model=GasEstimateResponse)
    async def estimate_gas(tx: Transaction, request: Request) -> GasEstimateResponse:
        return await request.app.state.reconciler.estimate_gas(tx)

    @app.post("/rlp", response_model=GasEstimateResponse)
    async def estimate_gas_rlp(raw: RawTransaction, request: Request) -> GasEstimateResponse:
        tx = decode_transaction(raw.to_bytes())
        return await request.app.state.reconciler.estimate_gas(tx)

    return app


app = create_app()
