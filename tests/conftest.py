# Standard Library
from datetime import timedelta
from typing import AsyncGenerator

# Third-Party Libraries
import pytest
import pytest_asyncio

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, AsyncEngine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

# First-Party Libraries
from boom.main import app
from boom.database import get_db_session
from boom.core.utils import utcnow
from boom.users.models import User, ROLE_CUSTOMER, ROLE_PRO, ROLE_ADMIN
from boom.catalog.models import Product
from boom.quotes.models import Quote, QuoteItem
from boom.auth.security import get_password_hash, create_access_token

# URL de base pour la DB en mémoire
TEST_DATABASE_BASE_URL = "sqlite+aiosqlite:///:memory:"

# --- Fixtures de Base ---

@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Crée un engine, des tables, et fournit une session DB en mémoire pour chaque test."""
    engine: AsyncEngine = create_async_engine(
        TEST_DATABASE_BASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with TestingSessionLocal() as session:
        yield session

    await engine.dispose()

@pytest_asyncio.fixture(scope="function")
async def test_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Fournit un AsyncClient httpx qui utilise la session DB de test isolée."""
    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override_get_db_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    del app.dependency_overrides[get_db_session]

# --- Fixtures Utilisateur et Authentification ---

async def _create_user(db_session: AsyncSession, email: str, role: str, is_validated: bool = False, **extra) -> User:
    user = User(
        email=email,
        password_hash=get_password_hash("testpassword"),
        role=role,
        is_validated=is_validated,
        **extra,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user

def _auth_headers(user: User) -> dict[str, str]:
    if user.id is None:
        pytest.fail(f"L'ID de {user.email} est None après commit/refresh.")
    access_token = create_access_token(data={"sub": str(user.id)})
    return {"Authorization": f"Bearer {access_token}"}

@pytest_asyncio.fixture(scope="function")
async def customer_user(db_session: AsyncSession) -> User:
    """Client particulier (non pro)."""
    return await _create_user(db_session, "client@example.com", ROLE_CUSTOMER)

@pytest_asyncio.fixture(scope="function")
async def pro_user(db_session: AsyncSession) -> User:
    """Compte professionnel validé."""
    return await _create_user(
        db_session, "pro@example.com", ROLE_PRO, is_validated=True,
        first_name="Paul", last_name="Martin", company_name="Jardins Martin",
    )

@pytest_asyncio.fixture(scope="function")
async def other_pro_user(db_session: AsyncSession) -> User:
    """Deuxième compte professionnel validé."""
    return await _create_user(db_session, "pro2@example.com", ROLE_PRO, is_validated=True)

@pytest_asyncio.fixture(scope="function")
async def unvalidated_pro_user(db_session: AsyncSession) -> User:
    """Compte professionnel en attente de validation."""
    return await _create_user(db_session, "pro-pending@example.com", ROLE_PRO, is_validated=False)

@pytest_asyncio.fixture(scope="function")
async def admin_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "admin@example.com", ROLE_ADMIN, is_validated=True)

@pytest_asyncio.fixture(scope="function")
async def auth_headers_customer(customer_user: User) -> dict[str, str]:
    return _auth_headers(customer_user)

@pytest_asyncio.fixture(scope="function")
async def auth_headers_pro(pro_user: User) -> dict[str, str]:
    return _auth_headers(pro_user)

@pytest_asyncio.fixture(scope="function")
async def auth_headers_other_pro(other_pro_user: User) -> dict[str, str]:
    return _auth_headers(other_pro_user)

@pytest_asyncio.fixture(scope="function")
async def auth_headers_unvalidated_pro(unvalidated_pro_user: User) -> dict[str, str]:
    return _auth_headers(unvalidated_pro_user)

@pytest_asyncio.fixture(scope="function")
async def auth_headers_admin(admin_user: User) -> dict[str, str]:
    return _auth_headers(admin_user)

# --- Fixtures Produits ---

async def _create_product(db_session: AsyncSession, **fields) -> Product:
    product = Product(**fields)
    db_session.add(product)
    await db_session.commit()
    await db_session.refresh(product)
    return product

@pytest_asyncio.fixture(scope="function")
async def product_pump(db_session: AsyncSession) -> Product:
    """Produit actif, stock confortable."""
    return await _create_product(
        db_session, name="Pompe de relevage", slug="pompe-de-relevage", sku="PMP-001",
        price_ht=50.0, tax_rate=20.0, price_ttc=60.0, stock_quantity=10, stock_alert_threshold=5,
    )

@pytest_asyncio.fixture(scope="function")
async def product_hose(db_session: AsyncSession) -> Product:
    """Produit actif en stock bas (sous le seuil d'alerte)."""
    return await _create_product(
        db_session, name="Tuyau d'arrosage 25m", slug="tuyau-arrosage-25m", sku="TUY-025",
        price_ht=25.0, tax_rate=20.0, price_ttc=30.0, stock_quantity=3, stock_alert_threshold=5,
    )

@pytest_asyncio.fixture(scope="function")
async def product_out_of_stock(db_session: AsyncSession) -> Product:
    return await _create_product(
        db_session, name="Sécateur", slug="secateur", sku="SEC-010",
        price_ht=10.0, tax_rate=20.0, price_ttc=12.0, stock_quantity=0, stock_alert_threshold=None,
    )

@pytest_asyncio.fixture(scope="function")
async def inactive_product(db_session: AsyncSession) -> Product:
    return await _create_product(
        db_session, name="Ancien modèle", slug="ancien-modele", sku="OLD-001",
        price_ht=99.0, tax_rate=20.0, price_ttc=118.8, stock_quantity=4, is_active=False,
    )

# --- Fixtures Devis ---

async def _create_quote(db_session: AsyncSession, user: User, product: Product, status: str, quote_number: str, valid_until=None) -> Quote:
    """Insère un devis directement en base (une ligne de 2 unités)."""
    quote = Quote(
        user_id=user.id,
        quote_number=quote_number,
        status=status,
        valid_until=valid_until,
        subtotal_ht=product.price_ht * 2,
        tax_rate=20.0,
        tax_amount=product.price_ht * 2 * 0.2,
        total_ht=product.price_ht * 2,
    )
    quote.items = [QuoteItem(
        product_id=product.id,
        product_name=product.name,
        product_sku=product.sku,
        quantity=2,
        unit_price_ht=product.price_ht,
        discount_rate=0.0,
    )]
    db_session.add(quote)
    await db_session.commit()
    await db_session.refresh(quote)
    return quote

@pytest.fixture
def make_quote(db_session: AsyncSession):
    """Fabrique de devis dans un statut donné."""
    counter = {"n": 0}

    async def factory(user: User, product: Product, status: str, valid_until=None) -> Quote:
        counter["n"] += 1
        return await _create_quote(db_session, user, product, status, f"DEV2401-TEST{counter['n']:02d}", valid_until)

    return factory

@pytest.fixture
def future_date():
    return utcnow() + timedelta(days=30)

@pytest.fixture
def past_date():
    return utcnow() - timedelta(days=1)
