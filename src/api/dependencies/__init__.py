from typing import Annotated

from fastapi import Depends, Request

from services.ledger_service import LedgerService


def get_ledger_service(request: Request) -> LedgerService:
    return request.app.state.ledger_service


LedgerServiceDep = Annotated[LedgerService, Depends(get_ledger_service)]
