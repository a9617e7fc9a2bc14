"""Financial step endpoints: instruments, statements and coverage."""

from datetime import date
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AppError
from app.database.session import get_async_session as get_session
from app.schemas.financial import InstrumentCreateRequest, InstrumentKind
from app.schemas.response import ApiResponse
from app.services.statement_service import StatementService
from app.utils.logging import get_logger
from app.utils.responses import create_api_response, http_exception_from_error

LOGGER = get_logger(__name__)

router = APIRouter()


async def get_statement_service(
    db_session: Annotated[AsyncSession, Depends(get_session)]
) -> StatementService:
    return StatementService(db_session)


StatementServiceDep = Annotated[StatementService, Depends(get_statement_service)]


@router.get(
    "/{claim_id}/financial/instruments",
    response_model=ApiResponse,
    summary="List bank accounts and credit cards",
    operation_id="list_financial_instruments",
)
async def list_instruments(
    request: Request,
    claim_id: UUID,
    statement_service: StatementServiceDep,
    kind: Optional[InstrumentKind] = Query(None),
) -> ApiResponse:
    """List a claim's financial instruments, optionally by kind."""
    try:
        instruments = await statement_service.list_instruments(claim_id, kind=kind)
    except AppError as e:
        raise http_exception_from_error(e, request)

    return create_api_response(
        data=instruments,
        message="Financial instruments retrieved successfully",
        request=request
    )


@router.post(
    "/{claim_id}/financial/instruments",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a bank account or credit card",
    operation_id="create_financial_instrument",
)
async def create_instrument(
    request: Request,
    claim_id: UUID,
    payload: InstrumentCreateRequest,
    statement_service: StatementServiceDep,
) -> ApiResponse:
    try:
        instrument = await statement_service.create_instrument(claim_id, payload)
    except AppError as e:
        raise http_exception_from_error(e, request)

    return create_api_response(
        data=instrument,
        message="Financial instrument created successfully",
        request=request
    )


@router.delete(
    "/{claim_id}/financial/instruments/{instrument_id}",
    response_model=ApiResponse,
    summary="Delete a bank account or credit card",
    operation_id="delete_financial_instrument",
)
async def delete_instrument(
    request: Request,
    claim_id: UUID,
    instrument_id: UUID,
    statement_service: StatementServiceDep,
) -> ApiResponse:
    """Delete an instrument together with its statements."""
    try:
        await statement_service.delete_instrument(claim_id, instrument_id)
    except AppError as e:
        raise http_exception_from_error(e, request)

    return create_api_response(
        data=None,
        message="Financial instrument deleted successfully",
        request=request
    )


@router.get(
    "/{claim_id}/financial/instruments/{instrument_id}/statements",
    response_model=ApiResponse,
    summary="List uploaded statements",
    operation_id="list_statements",
)
async def list_statements(
    request: Request,
    claim_id: UUID,
    instrument_id: UUID,
    statement_service: StatementServiceDep,
) -> ApiResponse:
    try:
        statements = await statement_service.list_statements(claim_id, instrument_id)
    except AppError as e:
        raise http_exception_from_error(e, request)

    return create_api_response(
        data=statements,
        message="Statements retrieved successfully",
        request=request
    )


@router.post(
    "/{claim_id}/financial/instruments/{instrument_id}/statements",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a statement",
    operation_id="upload_statement",
)
async def upload_statement(
    request: Request,
    claim_id: UUID,
    instrument_id: UUID,
    statement_service: StatementServiceDep,
    file: UploadFile = File(..., description="Statement as PDF or image"),
    start_date: date = Form(..., description="First day the statement covers"),
    end_date: date = Form(..., description="Last day the statement covers"),
) -> ApiResponse:
    """Upload a bank or card statement with the period it covers."""
    try:
        statement = await statement_service.upload_statement(
            claim_id, instrument_id, file, start_date, end_date
        )
    except AppError as e:
        LOGGER.warning(
            f"Statement upload rejected: {str(e)}",
            extra={"claim_id": str(claim_id), "instrument_id": str(instrument_id)},
        )
        raise http_exception_from_error(e, request)

    return create_api_response(
        data=statement,
        message="Statement uploaded successfully",
        request=request
    )


@router.delete(
    "/{claim_id}/financial/statements/{statement_id}",
    response_model=ApiResponse,
    summary="Delete a statement",
    operation_id="delete_statement",
)
async def delete_statement(
    request: Request,
    claim_id: UUID,
    statement_id: UUID,
    statement_service: StatementServiceDep,
) -> ApiResponse:
    try:
        statement = await statement_service.delete_statement(claim_id, statement_id)
    except AppError as e:
        raise http_exception_from_error(e, request)

    return create_api_response(
        data=statement,
        message="Statement deleted successfully",
        request=request
    )


@router.get(
    "/{claim_id}/financial/statements/{statement_id}/download",
    response_model=ApiResponse,
    summary="Get a statement download link",
    operation_id="get_statement_download_url",
)
async def get_statement_download_url(
    request: Request,
    claim_id: UUID,
    statement_id: UUID,
    statement_service: StatementServiceDep,
) -> ApiResponse:
    try:
        download = await statement_service.get_download_url(claim_id, statement_id)
    except AppError as e:
        raise http_exception_from_error(e, request)

    return create_api_response(
        data=download,
        message="Download URL generated successfully",
        request=request
    )


@router.get(
    "/{claim_id}/financial/instruments/{instrument_id}/coverage",
    response_model=ApiResponse,
    summary="Get statement coverage of the required period",
    operation_id="get_statement_coverage",
)
async def get_statement_coverage(
    request: Request,
    claim_id: UUID,
    instrument_id: UUID,
    statement_service: StatementServiceDep,
    accident_date: date = Query(..., description="Accident date ending the required period"),
    mode: Optional[str] = Query(None, description="summed or union"),
) -> ApiResponse:
    """Per-month statement coverage for the months before the accident."""
    try:
        report = await statement_service.get_coverage_report(
            claim_id, instrument_id, accident_date, mode=mode
        )
    except AppError as e:
        raise http_exception_from_error(e, request)

    return create_api_response(
        data=report,
        message="Statement coverage calculated successfully",
        request=request
    )
