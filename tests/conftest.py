"""
Configuración de fixtures para pytest.

Este módulo contiene fixtures reutilizables para todos los tests: base de
datos SQLite en memoria, una aplicación FastAPI configurada con los
componentes de la librería y tokens JWT de prueba.
"""

import pytest
from dataclasses import dataclass
from typing import Any, Dict, Generator, List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient
from pydantic import BaseModel, field_validator
from sqlalchemy import Float, Integer, String, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from coreweb.app import (
    add_localization,
    add_versioned_docs,
    api_version_prefix,
    setup_core_web,
)
from coreweb.auth import create_access_token, require_roles
from coreweb.core.auditing import Auditing
from coreweb.core.csv_formatters import CsvBody, csv_response
from coreweb.core.exceptions import NotFoundException
from coreweb.core.feature_flags import FeatureFlag, InMemoryFeatureFlags
from coreweb.core.search import perform_search
from coreweb.dependencies import search_filter_dependency
from coreweb.models.search import SearchFilter


# ==================== Record Types ====================

@dataclass
class QueryableRecord:
    """Registro de prueba para el motor de búsqueda."""
    name: str
    number: int
    type: str


class Product(BaseModel):
    name: str
    type: str
    price: float = 0
    description: Optional[str] = None

    @field_validator("price")
    @classmethod
    def validate_price(cls, v: float) -> float:
        if v < 0:
            raise ValueError("1001|El precio no puede ser negativo")
        return v


class Base(DeclarativeBase):
    pass


class ProductORM(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    type: Mapped[str] = mapped_column(String(50))
    price: Mapped[float] = mapped_column(Float, default=0)


class RecordingAuditLogger:
    """Audit logger que guarda los eventos en memoria."""

    def __init__(self):
        self.entries: List[Dict[str, Any]] = []

    def write_log(self, event_name, event_message, user_id, event_source, audit_info):
        self.entries.append({
            "event_name": event_name,
            "event_message": event_message,
            "user_id": user_id,
            "event_source": event_source,
            "audit_info": audit_info,
        })


# ==================== Database Fixtures ====================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a new database session for a test."""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=db_engine
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


# ==================== Data Fixtures ====================

@pytest.fixture
def products() -> List[Product]:
    """Sample products for search and CSV endpoints."""
    return [
        Product(name="Mesa", type="mueble", price=120.0, description="Roble"),
        Product(name="Lampara", type="iluminacion", price=35.5),
        Product(name="Silla", type="mueble", price=45.0),
        Product(name="Foco", type="iluminacion", price=5.0, description="LED, 9W"),
    ]


def make_records(count: int) -> List[QueryableRecord]:
    return [QueryableRecord(f"object {i}", i, "TestType") for i in range(count)]


@pytest.fixture
def records_106() -> List[QueryableRecord]:
    return make_records(106)


@pytest.fixture
def records_99() -> List[QueryableRecord]:
    return make_records(99)


# ==================== App Fixtures ====================

@pytest.fixture
def feature_flags() -> InMemoryFeatureFlags:
    return InMemoryFeatureFlags({
        "RolesBasedAuthentication": True,
        "Reports": True,
        "Disabled": False,
    })


@pytest.fixture
def audit_logger() -> RecordingAuditLogger:
    return RecordingAuditLogger()


def create_test_app(
    products: List[Product],
    feature_flags: Optional[InMemoryFeatureFlags] = None,
    audit_logger: Optional[RecordingAuditLogger] = None,
) -> FastAPI:
    app = FastAPI(title="CoreWeb Test")
    setup_core_web(app, feature_flags=feature_flags, audit_logger=audit_logger)

    v1 = api_version_prefix(1.0)
    v2 = api_version_prefix(2.0)

    @app.get(f"{v1}/products")
    def search_products(
        search_filter: SearchFilter[Product] = Depends(search_filter_dependency(Product)),
    ):
        return perform_search(products, search_filter)

    @app.post(f"{v1}/products", status_code=201)
    def create_product(product: Product):
        return product

    @app.get(f"{v1}/products/csv")
    def export_products():
        return csv_response(products, Product)

    @app.post(f"{v1}/products/import")
    async def import_products(items: List[Product] = Depends(CsvBody(Product))):
        return items

    @app.get(f"{v1}/products/{{id}}", name="GetProduct")
    def get_product(id: int, audit_info: dict = Depends(Auditing("Consulta", "Consulta de producto"))):
        if id >= len(products):
            raise NotFoundException(resource="Producto", identifier=str(id))
        return products[id]

    @app.get(f"{v1}/admin")
    def admin_only(claims: dict = require_roles("admin")):
        return {"sub": claims.get("sub")}

    @app.get(f"{v2}/reports", dependencies=[Depends(FeatureFlag("Reports"))])
    def reports():
        return {"reports": []}

    @app.get(f"{v1}/disabled", dependencies=[Depends(FeatureFlag("Disabled"))])
    def disabled():
        return {"ok": True}

    @app.get("/boom")
    def boom():
        raise RuntimeError("kaput")

    @app.get("/boom-sensitive")
    def boom_sensitive():
        raise RuntimeError("Cannot open server 'db01' requested by the login")

    @app.get("/culture")
    def culture(request: Request):
        return {"culture": request.state.culture}

    add_localization(app, ["en", "es", "fr-CA"], default_culture="en")
    add_versioned_docs(app, [1.0, 2.0])
    return app


@pytest.fixture(scope="function")
def app(products, feature_flags, audit_logger) -> FastAPI:
    return create_test_app(products, feature_flags, audit_logger)


@pytest.fixture(scope="function")
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Create a test client for the configured app."""
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


# ==================== Auth Token Fixtures ====================

@pytest.fixture
def admin_token() -> str:
    """Generate a valid JWT token for an admin user."""
    return create_access_token(data={"sub": "admin", "oid": "user-admin-1", "roles": ["admin"]})


@pytest.fixture
def cliente_token() -> str:
    """Generate a valid JWT token for a user without privileged roles."""
    return create_access_token(data={"sub": "cliente", "oid": "user-cliente-1", "role": "cliente"})


@pytest.fixture
def auth_headers_admin(admin_token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def auth_headers_cliente(cliente_token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {cliente_token}"}
