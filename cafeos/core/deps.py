from dataclasses import dataclass

from fastapi import Request

from cafeos.core.config import Settings
from cafeos.services.catalog_service import Catalog
from cafeos.services.checkout_service import CheckoutService
from cafeos.services.document_store import DocumentStore
from cafeos.services.inventory_service import InventoryLedger


@dataclass(frozen=True)
class Services:
    settings: Settings
    store: DocumentStore
    ledger: InventoryLedger
    catalog: Catalog
    checkout: CheckoutService


def build_services(store: DocumentStore, settings: Settings) -> Services:
    ledger = InventoryLedger(store, settings)
    catalog = Catalog(store, ledger)
    return Services(
        settings=settings,
        store=store,
        ledger=ledger,
        catalog=catalog,
        checkout=CheckoutService(store, catalog, ledger, settings),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services
