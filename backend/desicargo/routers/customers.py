"""Parties (customers) router.

Endpoints:
    GET    /api/customers/?branch_id=&search=   List customers
    GET    /api/customers/{id}                  Customer detail
    POST   /api/customers/                      Create customer
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from desicargo.auth.deps import require_permission
from desicargo.database import get_db
from desicargo.middleware.exceptions import PersistenceError, ResourceNotFoundError
from desicargo.models.branch import Branch
from desicargo.models.customer import Customer
from desicargo.models.user import User
from desicargo.schemas.customer import CustomerCreate, CustomerOut
from desicargo.schemas.validators import ensure_uuid

router = APIRouter()


@router.get("/", response_model=list[CustomerOut])
async def list_customers(
    branch_id: str | None = None,
    search: str | None = Query(None, max_length=100),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("customers.read")),
):
    query = select(Customer).order_by(Customer.name).limit(limit)
    if branch_id:
        ensure_uuid(branch_id, "branch")
        query = query.where(Customer.branch_id == branch_id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(or_(Customer.name.ilike(pattern), Customer.mobile.ilike(pattern)))
    result = await db.execute(query)
    return [CustomerOut.model_validate(c) for c in result.scalars().all()]


@router.get("/{customer_id}", response_model=CustomerOut)
async def get_customer(
    customer_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("customers.read")),
):
    ensure_uuid(customer_id, "customer")
    result = await db.execute(select(Customer).where(Customer.id == customer_id))
    customer = result.scalar_one_or_none()
    if not customer:
        raise ResourceNotFoundError("Customer", customer_id)
    return CustomerOut.model_validate(customer)


@router.post("/", response_model=CustomerOut, status_code=201)
async def create_customer(
    body: CustomerCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("customers.write")),
):
    branch_id = body.branch_id or user.branch_id
    if branch_id:
        ensure_uuid(branch_id, "branch")
        if (await db.execute(select(Branch.id).where(Branch.id == branch_id))).first() is None:
            raise PersistenceError(
                f"Referenced branch does not exist: {branch_id}",
                error_code="REFERENTIAL_INTEGRITY",
            )

    customer = Customer(**body.model_dump(exclude={"branch_id"}), branch_id=branch_id)
    db.add(customer)
    await db.flush()
    return CustomerOut.model_validate(customer)
