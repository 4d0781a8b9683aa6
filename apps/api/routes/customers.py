from fastapi import APIRouter, Depends, HTTPException, Response
from typing import List

from ..deps import get_customer_repo
from ..errors import BillingError
from ..models.customer import Customer, CustomerIn
from .common import to_http

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("", response_model=List[Customer])
def list_customers(customers=Depends(get_customer_repo)):
    return customers.list_customers()


@router.get("/{customer_id}", response_model=Customer)
def get_customer(customer_id: str, customers=Depends(get_customer_repo)):
    customer = customers.get_customer(customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.post("", response_model=Customer, status_code=201)
def create_customer(payload: CustomerIn, customers=Depends(get_customer_repo)):
    try:
        return customers.create_customer(payload)
    except BillingError as e:
        raise to_http(e)


@router.put("/{customer_id}", response_model=Customer)
def update_customer(customer_id: str, payload: CustomerIn, customers=Depends(get_customer_repo)):
    try:
        return customers.update_customer(customer_id, payload)
    except BillingError as e:
        raise to_http(e)


@router.delete("/{customer_id}", status_code=204)
def delete_customer(customer_id: str, customers=Depends(get_customer_repo)):
    try:
        customers.delete_customer(customer_id)
    except BillingError as e:
        raise to_http(e)
    return Response(status_code=204)
