"""
FastAPI эндпоинты для клиентов (компаний-заказчиков).
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import require_permission
from app.db.models import Client, User
from app.db.session import get_db
from app.models.api import ClientBase, ClientResponse, ClientUpdate
from app.services import storage

router = APIRouter(prefix="/api/clients", tags=["Clients"])


def get_client_or_404(db: Session, client_id: str) -> Client:
    client = db.get(Client, client_id)
    if client is None:
        raise HTTPException(status_code=404, detail="Клиент не найден")
    return client


@router.get("", response_model=List[ClientResponse])
def list_clients(
    active_only: bool = False,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("clients", "read")),
):
    return storage.list_clients(db, active_only=active_only)


@router.post("", response_model=ClientResponse, status_code=201)
def create_client(
    payload: ClientBase,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("clients", "create")),
):
    return storage.create_client(db, **payload.model_dump())


@router.get("/{client_id}", response_model=ClientResponse)
def get_client(
    client_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("clients", "read")),
):
    return get_client_or_404(db, client_id)


@router.put("/{client_id}", response_model=ClientResponse)
def update_client(
    client_id: str,
    payload: ClientUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("clients", "update")),
):
    client = get_client_or_404(db, client_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(client, key, value)
    db.commit()
    db.refresh(client)
    return client


@router.delete("/{client_id}", status_code=204)
def delete_client(
    client_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("clients", "delete")),
):
    client = get_client_or_404(db, client_id)
    if client.jobs:
        raise HTTPException(status_code=409, detail="У клиента есть вакансии, сначала удалите их")
    db.delete(client)
    db.commit()
