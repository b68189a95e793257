# factory_api/api/v1/endpoints/customers.py
# type: ignore

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from factory_api.core.errors import ConflictError
from factory_api.core.logging import get_logger
from factory_api.core.security import get_password_hash, verify_password
from factory_api.database import atomic, get_db
from factory_api.models.sales import Customer
from factory_api.schemas.sales import (
    CustomerLogin, CustomerLoginResponse, CustomerOut, CustomerRegister, CustomerRegisterResponse,
)

logger = get_logger(__name__)

router = APIRouter()


def short_key_for(phone: str) -> str:
    """Clave corta del cliente: últimos 5 dígitos del celular."""
    phone = phone.strip()
    return phone[-5:] if len(phone) >= 5 else phone


# ***************************************************************
# 1. Registro de cliente (POST /register)
# ***************************************************************
@router.post(
    "/register",
    response_model=CustomerRegisterResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Customers"],
)
def register_customer(customer_in: CustomerRegister, db: Session = Depends(get_db)):
    phone = customer_in.phone.strip()
    with atomic(db):
        if db.execute(select(Customer.id).where(Customer.phone == phone)).first():
            raise ConflictError(
                "DUPLICATE_PHONE", "Este número de teléfono ya está registrado.", {"phone": phone}
            )
        customer = Customer(
            short_key=short_key_for(phone),
            full_name=customer_in.full_name.strip(),
            email=customer_in.email or "",
            password_hash=get_password_hash(customer_in.password),
            street=customer_in.address or "",
            neighborhood=customer_in.neighborhood or "",
            postal_code=customer_in.postal_code or "",
            city=customer_in.city or "",
            state=customer_in.state or "",
            phone=phone,
            balance=0,
            credit_limit=0,
        )
        db.add(customer)
        db.flush()
        customer_id = customer.id

    logger.info("Cliente %s registrado", customer_id)
    return CustomerRegisterResponse(customer_id=customer_id)


# ***************************************************************
# 2. Login de cliente (POST /login)
# ***************************************************************
@router.post("/login", response_model=CustomerLoginResponse, tags=["Customers"])
def login_customer(login_in: CustomerLogin, db: Session = Depends(get_db)):
    customer = db.execute(
        select(Customer).where(Customer.phone == login_in.phone.strip())
    ).scalars().first()

    if customer is None or not verify_password(login_in.password, customer.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Teléfono o contraseña incorrectos",
        )

    return CustomerLoginResponse(customer=CustomerOut.model_validate(customer))
