"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from currency_converter.api.schemas import (
    AccountResponse,
    AccountUpdateRequest,
    ConversionResponse,
    ConvertRequest,
    LoginRequest,
    RateTableResponse,
    RegisterRequest,
    SessionResponse,
)
from currency_converter.app_logging import configure_logging
from currency_converter.containers import AppContainer
from currency_converter.domain.errors import (
    DuplicateEmailError,
    InvalidArgumentError,
    NotFoundError,
    RatesUnavailableError,
    StorageFaultError,
    UnknownCurrencyError,
    ValidationError,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.container.session_cache.restore()
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    _register_error_handlers(app, logger)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/session")
    def read_session(request: Request) -> SessionResponse:
        """Return the current session."""
        state_container: AppContainer = request.app.state.container
        return SessionResponse.from_session(state_container.session_cache.session)

    @app.post("/session")
    def login(payload: LoginRequest, request: Request) -> SessionResponse:
        """Sign in with email and password."""
        state_container: AppContainer = request.app.state.container
        account = state_container.identity_service.login(payload.email, payload.password)
        if account is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Wrong email or password",
            )
        return SessionResponse.from_session(state_container.session_cache.session)

    @app.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
    def logout(request: Request) -> Response:
        """Sign out."""
        state_container: AppContainer = request.app.state.container
        state_container.identity_service.logout()
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post("/accounts", status_code=status.HTTP_201_CREATED)
    def register(payload: RegisterRequest, request: Request) -> AccountResponse:
        """Register a new account and sign it in."""
        state_container: AppContainer = request.app.state.container
        account = state_container.identity_service.register(
            payload.name, payload.email, payload.password
        )
        return AccountResponse.from_account(account)

    @app.get("/accounts/{account_id}")
    def read_account(account_id: int, request: Request) -> AccountResponse:
        """Return the signed-in account as currently stored."""
        state_container: AppContainer = request.app.state.container
        _require_active_account(state_container, account_id)
        account = state_container.identity_service.get(account_id)
        return AccountResponse.from_account(account)

    @app.put("/accounts/{account_id}")
    def update_account(
        account_id: int, payload: AccountUpdateRequest, request: Request
    ) -> AccountResponse:
        """Replace the signed-in account's fields."""
        state_container: AppContainer = request.app.state.container
        _require_active_account(state_container, account_id)
        account = state_container.identity_service.update(
            account_id, payload.name, payload.email, payload.password
        )
        return AccountResponse.from_account(account)

    @app.delete("/accounts/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_account(account_id: int, request: Request) -> Response:
        """Delete the signed-in account and its history."""
        state_container: AppContainer = request.app.state.container
        _require_active_account(state_container, account_id)
        state_container.identity_service.delete(account_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post("/rates/{base_code}/refresh")
    async def refresh_rates(base_code: str, request: Request) -> RateTableResponse:
        """Fetch the latest rates for a base currency."""
        state_container: AppContainer = request.app.state.container
        table = await state_container.conversion_service.refresh(base_code)
        return RateTableResponse.from_table(table)

    @app.get("/rates/{base_code}")
    async def read_rates(base_code: str, request: Request) -> RateTableResponse:
        """Return the cached rates for a base currency."""
        state_container: AppContainer = request.app.state.container
        table = state_container.rate_cache.get(base_code)
        if table is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"No cached rates for {base_code.upper()}",
            )
        return RateTableResponse.from_table(table)

    @app.get("/rates/{base_code}/currencies")
    async def read_currencies(base_code: str, request: Request) -> dict[str, list[str]]:
        """List the codes the cached table for a base can convert into."""
        state_container: AppContainer = request.app.state.container
        await state_container.conversion_service.ensure_rates(base_code)
        return {"currencies": state_container.rate_cache.currencies(base_code)}

    @app.post("/conversions")
    async def convert(payload: ConvertRequest, request: Request) -> ConversionResponse:
        """Convert an amount, logging it for the signed-in account."""
        state_container: AppContainer = request.app.state.container
        record = await state_container.conversion_service.convert(
            payload.amount, payload.from_code, payload.to_code
        )
        return ConversionResponse.from_record(record)

    @app.get("/conversions")
    def list_conversions(
        request: Request, limit: int | None = None
    ) -> dict[str, list[ConversionResponse]]:
        """Return the signed-in account's conversion history."""
        state_container: AppContainer = request.app.state.container
        records = state_container.conversion_service.history(limit=limit)
        return {"conversions": [ConversionResponse.from_record(r) for r in records]}

    return app


def _require_active_account(container: AppContainer, account_id: int) -> None:
    """Only the signed-in account may change itself."""
    if container.session_cache.session.account_id != account_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)


def _register_error_handlers(app: FastAPI, logger: logging.Logger) -> None:
    @app.exception_handler(ValidationError)
    async def _validation(_: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc), "errors": exc.errors},
        )

    @app.exception_handler(DuplicateEmailError)
    async def _duplicate(_: Request, exc: DuplicateEmailError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)}
        )

    @app.exception_handler(NotFoundError)
    async def _not_found(_: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)}
        )

    @app.exception_handler(UnknownCurrencyError)
    async def _unknown_currency(_: Request, exc: UnknownCurrencyError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)}
        )

    @app.exception_handler(InvalidArgumentError)
    async def _invalid_argument(_: Request, exc: InvalidArgumentError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)}
        )

    @app.exception_handler(RatesUnavailableError)
    async def _unavailable(_: Request, exc: RatesUnavailableError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": str(exc)},
        )

    @app.exception_handler(StorageFaultError)
    async def _storage_fault(_: Request, exc: StorageFaultError) -> JSONResponse:
        logger.error("Storage fault during %s", exc.operation)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Something went wrong, please try again"},
        )
