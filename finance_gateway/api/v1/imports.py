"""/v1/imports - statement CSV preview with category suggestions, then commit"""

import time
import logging
from dataclasses import replace
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from finance_gateway.api.v1.schemas import (
    ImportCommitRequest,
    ImportCommitResponse,
    ImportPreviewRequest,
    ImportPreviewResponse,
    ImportRowSchema,
)
from finance_gateway.api.v1.transactions import build_transaction_draft
from finance_gateway.api.dependencies import get_classifier_client, get_request_id, get_user_id
from finance_gateway.config import settings
from finance_gateway.infrastructure.clients.classifier import ClassifierClient
from finance_gateway.infrastructure.database.session import get_db
from finance_gateway.infrastructure.database.repositories import CategoryRepository, TransactionRepository
from finance_gateway.infrastructure.observability.logging import log_transaction_created
from finance_gateway.infrastructure.observability.metrics import record_transactions
from finance_gateway.domain.exceptions import InvalidImportError, InvalidTransactionDataError, NotFoundError
from finance_gateway.domain.imports import apply_category_suggestions, parse_statement_csv, unique_descriptions
from finance_gateway.domain.installments import extract_installment_ratio
from finance_gateway.domain.models import TransactionKind

router = APIRouter()


@router.post("/imports/preview", response_model=ImportPreviewResponse)
async def preview_import(
    request_body: ImportPreviewRequest,
    request: Request,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    classifier: ClassifierClient = Depends(get_classifier_client),
):
    """
    Parse a statement CSV and suggest a category per row.

    Suggestions are best effort: failed classifier batches leave their rows
    on the default category and are reported in `failed_batches`.
    """
    request_id = get_request_id(request)
    try:
        rows = parse_statement_csv(request_body.csv_content)
    except InvalidImportError as e:
        logging.warning(f"Invalid import: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    categories = CategoryRepository(db).get_categories_by_user(user_id)
    category_ids_by_name = {category.name: str(category.id) for category in categories}

    suggestions, failed_batches = {}, 0
    if categories:
        suggestions, failed_batches = await classifier.suggest_in_batches(
            unique_descriptions(rows),
            list(category_ids_by_name),
            settings.classifier_batch_size,
        )

    rows = apply_category_suggestions(
        rows,
        suggestions,
        category_ids_by_name,
        default_category_id=category_ids_by_name.get(settings.import_default_category),
    )

    preview = []
    for row in rows:
        ratio = extract_installment_ratio(row.title)
        preview.append(
            ImportRowSchema(
                row_id=row.row_id,
                occurred_on=row.occurred_on,
                title=row.title,
                amount=row.amount,
                category_id=row.category_id,
                installment_number=ratio.installment_number if ratio else None,
                total_installments=ratio.total_installments if ratio else None,
            )
        )

    return ImportPreviewResponse(rows=preview, suggestions=suggestions, failed_batches=failed_batches)


@router.post("/imports", response_model=ImportCommitResponse, status_code=201)
def commit_import(
    request_body: ImportCommitRequest,
    request: Request,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    """Write previewed rows as expenses on the chosen account/card, all or nothing"""
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        drafts = []
        for row in request_body.rows:
            draft = build_transaction_draft(
                db,
                user_id,
                kind=TransactionKind.EXPENSE.value,
                amount=row.amount,
                occurred_on=row.occurred_on,
                description=row.title,
                account_id=request_body.account_id,
                category_id=row.category_id,
                card_id=request_body.card_id,
            )
            ratio = extract_installment_ratio(row.title)
            if ratio:
                draft = replace(
                    draft,
                    installment_number=ratio.installment_number,
                    total_installments=ratio.total_installments,
                    is_installment_payment=True,
                )
            drafts.append(draft)

        rows = TransactionRepository(db).create_transactions(user_id, drafts)
        db.commit()

    except NotFoundError as e:
        db.rollback()
        logging.warning(f"Reference not found: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=404, detail=str(e))

    except InvalidTransactionDataError as e:
        db.rollback()
        logging.warning(f"Invalid import row: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    duration_ms = (time.time() - start_time) * 1000
    record_transactions(TransactionKind.EXPENSE.value, "import", len(rows))
    log_transaction_created(request_id, user_id, TransactionKind.EXPENSE.value, len(rows), duration_ms)

    return ImportCommitResponse(imported=len(rows))
